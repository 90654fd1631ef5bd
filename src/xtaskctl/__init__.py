"""xtaskctl: confirmation-aware task runner for Cargo workspaces."""

__version__ = "0.1.0"
