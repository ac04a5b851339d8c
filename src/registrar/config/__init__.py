"""Application configuration helpers."""

from __future__ import annotations

from .env import positive_int_env
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .manifest import ManifestConfig, get_manifest_config
from .registrar import RegistrarConfig, get_registrar_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "ManifestConfig",
    "RateLimit",
    "RegistrarConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_manifest_config",
    "get_registrar_config",
    "get_storage_config",
    "positive_int_env",
]
