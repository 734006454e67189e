"""Application configuration helpers."""

from __future__ import annotations

from .env import env_int, optional_env_var
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .iam_api import (
    DEFAULT_BIGTABLE_API_BASE_URL,
    DEFAULT_SPANNER_API_BASE_URL,
    IamApiConfig,
    get_iam_api_config,
)
from .logging import configure_logging
from .reconciler import DEFAULT_MAX_CONFLICT_RETRIES, ReconcilerConfig, get_reconciler_config
from .storage import DatabaseConfig, default_data_dir, get_database_config
from .store import DEFAULT_STORE_BACKEND, StoreBackend, get_store_backend, parse_store_backend

__all__ = [
    "DEFAULT_BIGTABLE_API_BASE_URL",
    "DEFAULT_MAX_CONFLICT_RETRIES",
    "DEFAULT_SPANNER_API_BASE_URL",
    "DEFAULT_STORE_BACKEND",
    "ConfigurationError",
    "DatabaseConfig",
    "IamApiConfig",
    "RateLimit",
    "ReconcilerConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StoreBackend",
    "configure_logging",
    "default_data_dir",
    "env_int",
    "get_database_config",
    "get_iam_api_config",
    "get_reconciler_config",
    "get_store_backend",
    "optional_env_var",
    "parse_store_backend",
]
