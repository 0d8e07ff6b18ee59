"""Application configuration helpers."""

from __future__ import annotations

from .env import positive_int_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .mapping import MappingConfig, get_mapping_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "MappingConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_mapping_config",
    "get_storage_config",
    "positive_int_env_var",
    "require_env_vars",
]
