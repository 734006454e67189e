"""Read-modify-write cycle shared by all reconcilers.

Every reconciliation call re-reads the remote policy, plans one operation against it,
applies the operation to the role membership index and writes the flattened bindings back
with a ``bindings`` field mask. Nothing is cached between calls.

The etag read by ``get`` travels with the policy into ``set``. Stores that check it turn a
lost update into ``ConcurrentModificationError``; the cycle then starts over from a fresh
read, up to ``max_conflict_retries`` times. Stores that ignore etags keep last-write-wins
semantics and a concurrent writer's change can still be silently overwritten.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from iamsync.config.reconciler import DEFAULT_MAX_CONFLICT_RETRIES
from iamsync.domain.model import (
    BINDINGS_FIELD_MASK,
    ConcurrentModificationError,
    Policy,
    PolicyNotFoundError,
)

from .operations import PolicyOperation, apply_operation

if TYPE_CHECKING:
    from iamsync.domain.ports import PolicyStore

log = getLogger(__name__)

type OperationPlanner = Callable[[Policy], PolicyOperation]


@dataclass(slots=True, frozen=True)
class ReconcileResult:
    """Outcome of one mutating reconciliation call."""

    resource_id: str
    policy: Policy
    attempts: int = 1
    changed: bool = True


@dataclass(slots=True)
class ReadModifyWrite:
    store: PolicyStore
    max_conflict_retries: int = DEFAULT_MAX_CONFLICT_RETRIES

    def read(self, resource_id: str) -> Policy:
        policy = self.store.get(resource_id)
        log.debug(
            "Read policy for %s: version=%s, etag=%s, bindings=%d",
            resource_id,
            policy.version,
            policy.etag,
            len(policy.bindings),
        )
        return policy

    def read_or_empty(self, resource_id: str) -> Policy:
        try:
            return self.read(resource_id)
        except PolicyNotFoundError:
            log.debug("No policy stored for %s yet, starting from an empty policy", resource_id)
            return Policy.empty()

    def mutate(self, resource_id: str, plan: OperationPlanner) -> ReconcileResult:
        """Run ``plan`` against a fresh read and write the result.

        ``plan`` is re-evaluated on every attempt so its preconditions always see the
        policy that is actually being overwritten.
        """

        attempts = 0
        while True:
            attempts += 1
            current = self.read_or_empty(resource_id)
            operation = plan(current)
            before = current.index()
            after = apply_operation(before, operation)
            desired = current.with_bindings(after.flatten())
            try:
                written = self.store.set(resource_id, desired, BINDINGS_FIELD_MASK)
            except ConcurrentModificationError:
                if attempts > self.max_conflict_retries:
                    log.warning(
                        "Giving up on %s after %d conflicting writes",
                        resource_id,
                        attempts,
                    )
                    raise
                log.warning(
                    "Policy for %s changed concurrently (attempt %d), retrying",
                    resource_id,
                    attempts,
                )
                continue

            changed = after != before
            log.debug(
                "Wrote policy for %s: operation=%s, changed=%s, attempts=%d",
                resource_id,
                type(operation).__name__,
                changed,
                attempts,
            )
            return ReconcileResult(
                resource_id=resource_id,
                policy=written,
                attempts=attempts,
                changed=changed,
            )
