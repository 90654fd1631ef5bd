"""Domain layer: vocabularies, targets, filters, and the error taxonomy.

Pure logic only: nothing here spawns processes or reads configuration.
"""
