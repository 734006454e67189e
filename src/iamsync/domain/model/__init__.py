"""Policy domain model."""

from __future__ import annotations

from .errors import (
    AlreadyExistsError,
    AlreadyManagedError,
    ConcurrentModificationError,
    IamSyncError,
    InvalidResourceNameError,
    PolicyNotFoundError,
    RemoteUnavailableError,
    UnsupportedPolicyError,
)
from .policy import (
    BINDINGS_FIELD,
    BINDINGS_FIELD_MASK,
    DEFAULT_POLICY_VERSION,
    Binding,
    Policy,
    RoleMembershipIndex,
)
from .resource_names import (
    BindingRef,
    MemberRef,
    ResourceKind,
    ResourceName,
    parse_binding_import_id,
    parse_member_import_id,
    parse_resource_name,
)

__all__ = [
    "BINDINGS_FIELD",
    "BINDINGS_FIELD_MASK",
    "DEFAULT_POLICY_VERSION",
    "AlreadyExistsError",
    "AlreadyManagedError",
    "Binding",
    "BindingRef",
    "ConcurrentModificationError",
    "IamSyncError",
    "InvalidResourceNameError",
    "MemberRef",
    "Policy",
    "PolicyNotFoundError",
    "RemoteUnavailableError",
    "ResourceKind",
    "ResourceName",
    "RoleMembershipIndex",
    "UnsupportedPolicyError",
    "parse_binding_import_id",
    "parse_member_import_id",
    "parse_resource_name",
]
