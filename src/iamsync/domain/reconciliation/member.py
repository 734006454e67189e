"""Additive reconciliation of a single principal within a single role.

Members never own a role: creating or deleting one principal leaves every other principal
and role exactly as read. Because the store's write grain is the whole ``bindings`` field,
each member change still rewrites the complete policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from iamsync.config.reconciler import DEFAULT_MAX_CONFLICT_RETRIES
from iamsync.domain.model import (
    AlreadyExistsError,
    PolicyNotFoundError,
    parse_member_import_id,
)
from iamsync.domain.model.errors import describe_target

from .cycle import ReadModifyWrite, ReconcileResult
from .operations import MemberAdd, MemberRemove, PolicyOperation

if TYPE_CHECKING:
    from iamsync.domain.model import MemberRef, Policy
    from iamsync.domain.ports import PolicyStore

log = getLogger(__name__)


@dataclass(slots=True)
class MemberReconciler:
    store: PolicyStore
    max_conflict_retries: int = DEFAULT_MAX_CONFLICT_RETRIES

    @staticmethod
    def from_import_id(import_id: str) -> MemberRef:
        return parse_member_import_id(import_id)

    @property
    def _cycle(self) -> ReadModifyWrite:
        return ReadModifyWrite(self.store, max_conflict_retries=self.max_conflict_retries)

    def create(self, resource_id: str, role: str, principal: str) -> ReconcileResult:
        operation = MemberAdd(role=role, principal=principal)

        def plan(current: Policy) -> PolicyOperation:
            if current.index().has_member(role, principal):
                raise AlreadyExistsError(
                    f"{describe_target(resource_id, role, principal)} already exists",
                    resource_id=resource_id,
                    role=role,
                    principal=principal,
                )
            return operation

        log.info("Adding %s", describe_target(resource_id, role, principal))
        return self._cycle.mutate(resource_id, plan)

    def read(self, resource_id: str, role: str, principal: str) -> str:
        try:
            policy = self._cycle.read(resource_id)
        except PolicyNotFoundError as exc:
            raise PolicyNotFoundError(
                f"No policy for {describe_target(resource_id, role, principal)}",
                resource_id=resource_id,
                role=role,
                principal=principal,
            ) from exc
        if not policy.index().has_member(role, principal):
            raise PolicyNotFoundError(
                f"{describe_target(resource_id, role, principal)} not found",
                resource_id=resource_id,
                role=role,
                principal=principal,
            )
        return principal

    def update(self, resource_id: str, role: str, principal: str) -> ReconcileResult:
        operation = MemberAdd(role=role, principal=principal)
        log.info("Ensuring %s", describe_target(resource_id, role, principal))
        return self._cycle.mutate(resource_id, lambda _current: operation)

    def delete(self, resource_id: str, role: str, principal: str) -> ReconcileResult:
        operation = MemberRemove(role=role, principal=principal)
        log.info("Removing %s", describe_target(resource_id, role, principal))
        return self._cycle.mutate(resource_id, lambda _current: operation)
