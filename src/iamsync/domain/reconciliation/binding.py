"""Authoritative per-role reconciliation.

A binding owns the complete principal set of exactly one role. Other roles on the same
resource are read and written back untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from iamsync.config.reconciler import DEFAULT_MAX_CONFLICT_RETRIES
from iamsync.domain.model import (
    AlreadyManagedError,
    Binding,
    PolicyNotFoundError,
    parse_binding_import_id,
)
from iamsync.domain.model.errors import describe_target

from .cycle import ReadModifyWrite, ReconcileResult
from .operations import PolicyOperation, RoleRemove, RoleReplace

if TYPE_CHECKING:
    from collections.abc import Iterable

    from iamsync.domain.model import BindingRef, Policy
    from iamsync.domain.ports import PolicyStore

log = getLogger(__name__)


@dataclass(slots=True)
class BindingReconciler:
    store: PolicyStore
    max_conflict_retries: int = DEFAULT_MAX_CONFLICT_RETRIES

    @staticmethod
    def from_import_id(import_id: str) -> BindingRef:
        """Resolve an import id to the binding it targets, without reading the policy."""

        return parse_binding_import_id(import_id)

    @property
    def _cycle(self) -> ReadModifyWrite:
        return ReadModifyWrite(self.store, max_conflict_retries=self.max_conflict_retries)

    def create(
        self,
        resource_id: str,
        role: str,
        principals: Iterable[str],
    ) -> ReconcileResult:
        operation = RoleReplace.of(role, principals)

        def plan(current: Policy) -> PolicyOperation:
            if current.index().has_principals(role):
                raise AlreadyManagedError(
                    f"Binding for {describe_target(resource_id, role)} already has members; "
                    "only one binding may manage a role",
                    resource_id=resource_id,
                    role=role,
                )
            return operation

        log.info("Creating binding for %s", describe_target(resource_id, role))
        return self._cycle.mutate(resource_id, plan)

    def read(self, resource_id: str, role: str) -> Binding:
        index = self._cycle.read(resource_id).index()
        if not index.has_principals(role):
            raise PolicyNotFoundError(
                f"No binding for {describe_target(resource_id, role)}",
                resource_id=resource_id,
                role=role,
            )
        return Binding(role=role, principals=index.principals(role))

    def update(
        self,
        resource_id: str,
        role: str,
        principals: Iterable[str],
    ) -> ReconcileResult:
        operation = RoleReplace.of(role, principals)
        log.info("Updating binding for %s", describe_target(resource_id, role))
        return self._cycle.mutate(resource_id, lambda _current: operation)

    def delete(self, resource_id: str, role: str) -> ReconcileResult:
        operation = RoleRemove(role=role)
        log.info("Deleting binding for %s", describe_target(resource_id, role))
        return self._cycle.mutate(resource_id, lambda _current: operation)
