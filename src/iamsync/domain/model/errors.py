"""Typed errors raised by policy reconciliation."""

from __future__ import annotations


class IamSyncError(RuntimeError):
    """Base error for policy reconciliation failures.

    Carries the resource id and, where applicable, the role and principal the failing
    operation targeted so callers can report precisely what was being managed.
    """

    def __init__(
        self,
        message: str,
        *,
        resource_id: str | None = None,
        role: str | None = None,
        principal: str | None = None,
    ) -> None:
        super().__init__(message)
        self.resource_id = resource_id
        self.role = role
        self.principal = principal


class PolicyNotFoundError(IamSyncError):
    """Raised when a resource policy, a role or a role member is absent on read."""


class AlreadyExistsError(IamSyncError):
    """Raised when a member is created in a role that already contains it."""


class AlreadyManagedError(IamSyncError):
    """Raised when a binding is created for a role that already holds principals."""


class RemoteUnavailableError(IamSyncError):
    """Raised when the policy store cannot be reached."""


class ConcurrentModificationError(IamSyncError):
    """Raised when a write carries a stale etag."""


class UnsupportedPolicyError(IamSyncError):
    """Raised when a stored policy uses features the reconcilers cannot manage."""


class InvalidResourceNameError(ValueError):
    """Raised when a resource name or import id does not match a known format."""

    def __init__(self, message: str, *, name: str) -> None:
        super().__init__(message)
        self.name = name


def describe_target(
    resource_id: str | None,
    role: str | None = None,
    principal: str | None = None,
) -> str:
    parts: list[str] = []
    if principal is not None:
        parts.append(f"member ({principal})")
    if role is not None:
        parts.append(f"role ({role})")
    if resource_id is not None:
        parts.append(f"resource ({resource_id})")
    return " in ".join(parts) if parts else "policy"
