"""Infrastructure layer: external processes, cargo metadata, toolchain helpers.

Every subprocess the tool spawns goes through this package.
"""
