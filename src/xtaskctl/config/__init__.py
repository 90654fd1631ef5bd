"""Configuration: xtaskctl.toml discovery, settings models, and logging setup."""
