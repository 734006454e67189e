"""Policy store backend selection."""

from __future__ import annotations

from enum import StrEnum

from .env import optional_env_var
from .errors import ConfigurationError


class StoreBackend(StrEnum):
    MEMORY = "memory"
    SQLITE = "sqlite"
    HTTP = "http"


DEFAULT_STORE_BACKEND = StoreBackend.SQLITE


def parse_store_backend(value: str) -> StoreBackend:
    try:
        return StoreBackend(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(backend.value for backend in StoreBackend)
        raise ConfigurationError(
            f"Unsupported policy store backend {value!r} (expected one of: {choices})"
        ) from exc


def get_store_backend() -> StoreBackend:
    raw = optional_env_var("IAMSYNC_STORE")
    if raw is None:
        return DEFAULT_STORE_BACKEND
    return parse_store_backend(raw)
