"""Service layer: confirmation, step catalog, dispatch engine, task service.

INVARIANT: Services return ServiceResult; they never print or exit.
"""
