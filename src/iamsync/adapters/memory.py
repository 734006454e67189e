"""Process-local policy store."""

from __future__ import annotations

from dataclasses import replace
from itertools import count
from logging import getLogger
from typing import TYPE_CHECKING, Final

from iamsync.domain.model import (
    BINDINGS_FIELD,
    ConcurrentModificationError,
    Policy,
    PolicyNotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from iamsync.domain.model import Binding

log = getLogger(__name__)

WRITABLE_FIELDS: Final[frozenset[str]] = frozenset({BINDINGS_FIELD, "version"})


def validate_field_mask(field_mask: Sequence[str]) -> frozenset[str]:
    fields = frozenset(field_mask)
    if not fields:
        raise ValueError("Field mask must name at least one field")
    unknown = fields - WRITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unsupported field mask paths: {', '.join(sorted(unknown))}")
    return fields


def apply_field_mask(stored: Policy, incoming: Policy, fields: frozenset[str]) -> Policy:
    merged = stored
    if BINDINGS_FIELD in fields:
        merged = merged.with_bindings(incoming.bindings)
    if "version" in fields:
        merged = replace(merged, version=incoming.version)
    return merged


class InMemoryPolicyStore:
    """Dictionary-backed ``PolicyStore`` with etag checking.

    Every successful write assigns a new etag. A write whose etag differs from the stored
    one is rejected, and so is a write without an etag once the resource exists, since
    its author saw no policy at all. With ``check_etag`` disabled the store behaves as
    last-write-wins.
    """

    def __init__(
        self,
        policies: Mapping[str, Policy] | None = None,
        *,
        check_etag: bool = True,
    ) -> None:
        self.check_etag = check_etag
        self._revision = count(1)
        self._policies: dict[str, Policy] = {}
        self.writes: list[tuple[str, Policy]] = []
        for resource_id, policy in (policies or {}).items():
            self._policies[resource_id] = replace(policy, etag=self._next_etag())

    def seed(self, resource_id: str, bindings: Iterable[Binding] = ()) -> Policy:
        """Create ``resource_id`` with the given bindings, bypassing etag checks."""

        policy = Policy(bindings=tuple(bindings), etag=self._next_etag())
        self._policies[resource_id] = policy
        return policy

    def get(self, resource_id: str) -> Policy:
        try:
            return self._policies[resource_id]
        except KeyError:
            raise PolicyNotFoundError(
                f"No policy stored for resource ({resource_id})",
                resource_id=resource_id,
            ) from None

    def set(self, resource_id: str, policy: Policy, field_mask: Sequence[str]) -> Policy:
        fields = validate_field_mask(field_mask)
        stored = self._policies.get(resource_id)
        if self.check_etag and stored is not None and policy.etag != stored.etag:
            raise ConcurrentModificationError(
                f"Stale etag {policy.etag} for resource ({resource_id}), "
                f"current is {stored.etag}",
                resource_id=resource_id,
            )
        base = stored if stored is not None else Policy(version=policy.version)
        written = replace(apply_field_mask(base, policy, fields), etag=self._next_etag())
        self._policies[resource_id] = written
        self.writes.append((resource_id, written))
        log.debug("Stored policy for %s with etag %s", resource_id, written.etag)
        return written

    def _next_etag(self) -> str:
        return f"etag-{next(self._revision)}"
