"""Reconciliation defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_int

DEFAULT_MAX_CONFLICT_RETRIES = 3


@dataclass(frozen=True, slots=True)
class ReconcilerConfig:
    max_conflict_retries: int = DEFAULT_MAX_CONFLICT_RETRIES


def get_reconciler_config() -> ReconcilerConfig:
    return ReconcilerConfig(
        max_conflict_retries=env_int(
            "IAMSYNC_MAX_CONFLICT_RETRIES",
            default=DEFAULT_MAX_CONFLICT_RETRIES,
            minimum=0,
        )
    )
