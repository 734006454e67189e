"""Authoritative whole-policy reconciliation.

The declared bindings *are* the policy: whatever binding or member reconcilers wrote to
the same resource is replaced.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from iamsync.config.reconciler import DEFAULT_MAX_CONFLICT_RETRIES

from .cycle import ReadModifyWrite, ReconcileResult
from .operations import FullReplace

if TYPE_CHECKING:
    from collections.abc import Iterable

    from iamsync.domain.model import Binding, Policy
    from iamsync.domain.ports import PolicyStore

log = getLogger(__name__)


@dataclass(slots=True)
class PolicyReconciler:
    store: PolicyStore
    max_conflict_retries: int = DEFAULT_MAX_CONFLICT_RETRIES

    @property
    def _cycle(self) -> ReadModifyWrite:
        return ReadModifyWrite(self.store, max_conflict_retries=self.max_conflict_retries)

    def apply(self, resource_id: str, desired_bindings: Iterable[Binding]) -> ReconcileResult:
        """Replace every binding of ``resource_id`` with ``desired_bindings``."""

        operation = FullReplace.of(desired_bindings)
        log.info(
            "Applying authoritative policy to %s (%d bindings)",
            resource_id,
            len(operation.bindings),
        )
        return self._cycle.mutate(resource_id, lambda _current: operation)

    def read(self, resource_id: str) -> Policy:
        return self._cycle.read(resource_id)

    def delete(self, resource_id: str) -> ReconcileResult:
        log.info("Clearing all bindings of %s", resource_id)
        return self._cycle.mutate(resource_id, lambda _current: FullReplace(bindings=()))
