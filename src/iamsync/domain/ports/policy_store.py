"""Port for reading and writing remote authorization policies."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from iamsync.domain.model import Policy


@runtime_checkable
class PolicyStore(Protocol):
    """Read/write access to the authorization policy of a resource.

    ``get`` raises ``PolicyNotFoundError`` when the resource has never had a policy set.
    ``set`` writes only the fields named in ``field_mask`` and returns the stored policy;
    fields outside the mask are preserved by the store. Stores that track etags raise
    ``ConcurrentModificationError`` when ``policy.etag`` is stale.
    """

    def get(self, resource_id: str) -> Policy: ...

    def set(self, resource_id: str, policy: Policy, field_mask: Sequence[str]) -> Policy: ...
