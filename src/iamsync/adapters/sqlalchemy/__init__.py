"""SQLAlchemy adapter package for iamsync."""

from __future__ import annotations

from .mappings import create_all_tables, iam_policy_table, metadata
from .store import (
    SqlAlchemyPolicyStore,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyPolicyStore",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "iam_policy_table",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
]
