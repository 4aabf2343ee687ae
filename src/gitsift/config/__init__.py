"""Configuration loading, schema, and defaults."""

from gitsift.config.loader import ConfigError, load_config
from gitsift.config.schema import GitSiftConfig

__all__ = [
    "ConfigError",
    "GitSiftConfig",
    "load_config",
]
