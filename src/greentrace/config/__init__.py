"""Application configuration helpers."""

from __future__ import annotations

from .chain import ChainConfig, get_chain_config
from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging, resolve_log_level
from .storage import (
    CacheDatabaseConfig,
    StorageConfig,
    get_cache_database_config,
    get_storage_config,
)
from .tracking import (
    LISTEN_DEFAULT,
    LISTEN_LONG,
    LISTEN_SHORT,
    RefreshDelays,
    TrackerSettings,
    get_tracker_settings,
)

__all__ = [
    "LISTEN_DEFAULT",
    "LISTEN_LONG",
    "LISTEN_SHORT",
    "CacheDatabaseConfig",
    "ChainConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "RefreshDelays",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "TrackerSettings",
    "configure_logging",
    "get_cache_database_config",
    "get_chain_config",
    "get_storage_config",
    "get_tracker_settings",
    "require_env_var",
    "require_env_vars",
    "resolve_log_level",
]
