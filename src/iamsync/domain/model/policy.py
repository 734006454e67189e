"""In-memory policy model.

A ``Policy`` is what the store hands out and accepts; a ``RoleMembershipIndex`` is the
working structure every reconciler operates on. Bindings are flattened into the index,
mutated per role or per member, and flattened back into bindings before the write.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

DEFAULT_POLICY_VERSION: Final[int] = 3
BINDINGS_FIELD: Final[str] = "bindings"
BINDINGS_FIELD_MASK: Final[tuple[str, ...]] = (BINDINGS_FIELD,)


@dataclass(frozen=True, slots=True)
class Binding:
    """One role paired with the set of principals granted it."""

    role: str
    principals: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if not self.role:
            raise ValueError("Binding role must not be empty")
        if not isinstance(self.principals, frozenset):
            object.__setattr__(self, "principals", frozenset(self.principals))

    @classmethod
    def of(cls, role: str, principals: Iterable[str]) -> Binding:
        return cls(role=role, principals=frozenset(principals))

    def sorted_principals(self) -> list[str]:
        return sorted(self.principals)


@dataclass(frozen=True, slots=True)
class Policy:
    """Complete role -> principals authorization object for one resource.

    ``version`` and ``etag`` come from the store and are forwarded unchanged on writes.
    """

    bindings: tuple[Binding, ...] = ()
    version: int = DEFAULT_POLICY_VERSION
    etag: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.bindings, tuple):
            object.__setattr__(self, "bindings", tuple(self.bindings))

    @classmethod
    def empty(cls) -> Policy:
        return cls()

    def with_bindings(self, bindings: Iterable[Binding]) -> Policy:
        return replace(self, bindings=tuple(bindings))

    def index(self) -> RoleMembershipIndex:
        return RoleMembershipIndex.from_bindings(self.bindings)

    def normalized(self) -> Policy:
        """Return a copy with one binding per role and empty bindings dropped."""

        return self.with_bindings(self.index().flatten())

    def as_dict(self) -> dict[str, list[str]]:
        return {role: sorted(principals) for role, principals in self.index().items()}


@dataclass(slots=True, eq=False)
class RoleMembershipIndex:
    """Mutable mapping of role -> principals.

    A role may be present with an empty set while the index is worked on; such roles are
    dropped by ``flatten`` and ignored by equality, since an empty binding and an absent
    binding mean the same thing to the store.
    """

    members_by_role: dict[str, set[str]] = field(default_factory=dict[str, set[str]])

    @classmethod
    def from_bindings(cls, bindings: Iterable[Binding]) -> RoleMembershipIndex:
        index = cls()
        for binding in bindings:
            index.members_by_role.setdefault(binding.role, set()).update(binding.principals)
        return index

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[str]]) -> RoleMembershipIndex:
        return cls({role: set(principals) for role, principals in mapping.items()})

    def __contains__(self, role: object) -> bool:
        return role in self.members_by_role

    def __iter__(self) -> Iterator[str]:
        return iter(self.members_by_role)

    def __len__(self) -> int:
        return len(self.members_by_role)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RoleMembershipIndex):
            return NotImplemented
        return self.effective() == other.effective()

    def items(self) -> Iterator[tuple[str, frozenset[str]]]:
        for role, principals in self.members_by_role.items():
            if principals:
                yield role, frozenset(principals)

    def effective(self) -> dict[str, frozenset[str]]:
        return dict(self.items())

    def principals(self, role: str) -> frozenset[str]:
        return frozenset(self.members_by_role.get(role, ()))

    def has_principals(self, role: str) -> bool:
        return bool(self.members_by_role.get(role))

    def has_member(self, role: str, principal: str) -> bool:
        return principal in self.members_by_role.get(role, ())

    def replace_role(self, role: str, principals: Iterable[str]) -> None:
        self.members_by_role[role] = set(principals)

    def remove_role(self, role: str) -> bool:
        return self.members_by_role.pop(role, None) is not None

    def add_member(self, role: str, principal: str) -> bool:
        members = self.members_by_role.setdefault(role, set())
        if principal in members:
            return False
        members.add(principal)
        return True

    def remove_member(self, role: str, principal: str) -> bool:
        members = self.members_by_role.get(role)
        if members is None or principal not in members:
            return False
        members.discard(principal)
        return True

    def copy(self) -> RoleMembershipIndex:
        return RoleMembershipIndex(
            {role: set(principals) for role, principals in self.members_by_role.items()}
        )

    def flatten(self) -> tuple[Binding, ...]:
        # sorted only for readable diffs; the store may reorder freely
        return tuple(
            Binding(role=role, principals=principals)
            for role, principals in sorted(self.items())
        )
