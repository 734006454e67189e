"""Domain port definitions for adapters."""

from __future__ import annotations

from .policy_store import PolicyStore

__all__ = ["PolicyStore"]
