"""Policy mutations expressed as data.

The three reconcilers differ only in which operation they request: whole-policy replace,
per-role replace/removal, or per-member add/removal. ``apply_operation`` is the single
place where an operation changes a ``RoleMembershipIndex``.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import singledispatch
from typing import TYPE_CHECKING

from iamsync.domain.model import Binding, RoleMembershipIndex

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True, slots=True)
class FullReplace:
    bindings: tuple[Binding, ...]

    @classmethod
    def of(cls, bindings: Iterable[Binding]) -> FullReplace:
        return cls(bindings=tuple(bindings))


@dataclass(frozen=True, slots=True)
class RoleReplace:
    role: str
    principals: frozenset[str]

    @classmethod
    def of(cls, role: str, principals: Iterable[str]) -> RoleReplace:
        return cls(role=role, principals=frozenset(principals))


@dataclass(frozen=True, slots=True)
class RoleRemove:
    role: str


@dataclass(frozen=True, slots=True)
class MemberAdd:
    role: str
    principal: str


@dataclass(frozen=True, slots=True)
class MemberRemove:
    role: str
    principal: str


type PolicyOperation = FullReplace | RoleReplace | RoleRemove | MemberAdd | MemberRemove


def apply_operation(
    index: RoleMembershipIndex,
    operation: PolicyOperation,
) -> RoleMembershipIndex:
    """Return a new index with ``operation`` applied; ``index`` is left untouched."""

    return _apply(operation, index)


@singledispatch
def _apply(operation: object, index: RoleMembershipIndex) -> RoleMembershipIndex:
    _ = index
    raise TypeError(f"Unsupported policy operation: {type(operation).__name__}")


@_apply.register
def _(operation: FullReplace, index: RoleMembershipIndex) -> RoleMembershipIndex:
    _ = index
    return RoleMembershipIndex.from_bindings(operation.bindings)


@_apply.register
def _(operation: RoleReplace, index: RoleMembershipIndex) -> RoleMembershipIndex:
    updated = index.copy()
    updated.replace_role(operation.role, operation.principals)
    return updated


@_apply.register
def _(operation: RoleRemove, index: RoleMembershipIndex) -> RoleMembershipIndex:
    updated = index.copy()
    updated.remove_role(operation.role)
    return updated


@_apply.register
def _(operation: MemberAdd, index: RoleMembershipIndex) -> RoleMembershipIndex:
    updated = index.copy()
    updated.add_member(operation.role, operation.principal)
    return updated


@_apply.register
def _(operation: MemberRemove, index: RoleMembershipIndex) -> RoleMembershipIndex:
    updated = index.copy()
    updated.remove_member(operation.role, operation.principal)
    return updated
