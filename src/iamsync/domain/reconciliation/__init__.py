"""Policy reconciliation engine.

Three reconcilers mutate the same remote policy object at different granularities:
1) ``PolicyReconciler`` replaces the whole policy (authoritative)
2) ``BindingReconciler`` replaces the principals of one role (authoritative per role)
3) ``MemberReconciler`` adds or removes one principal in one role (additive)

All of them run the same read-modify-write cycle and express their change as a
``PolicyOperation`` applied to a ``RoleMembershipIndex``.
"""

from __future__ import annotations

from .binding import BindingReconciler
from .cycle import ReadModifyWrite, ReconcileResult
from .member import MemberReconciler
from .operations import (
    FullReplace,
    MemberAdd,
    MemberRemove,
    PolicyOperation,
    RoleRemove,
    RoleReplace,
    apply_operation,
)
from .policy import PolicyReconciler

__all__ = [
    "BindingReconciler",
    "FullReplace",
    "MemberAdd",
    "MemberReconciler",
    "MemberRemove",
    "PolicyOperation",
    "PolicyReconciler",
    "ReadModifyWrite",
    "ReconcileResult",
    "RoleRemove",
    "RoleReplace",
    "apply_operation",
]
