"""End-to-end reconciliation behaviour against the in-memory store."""

from __future__ import annotations

import pytest

from iamsync.adapters.memory import InMemoryPolicyStore
from iamsync.domain.model import AlreadyExistsError, Policy, PolicyNotFoundError
from iamsync.domain.reconciliation import BindingReconciler, MemberReconciler
from tests.helpers.policies import DATABASE, make_bindings, seeded_store

EDITOR = "roles/editor"
VIEWER = "roles/viewer"
ADMIN = "roles/admin"


def test_member_lifecycle_on_fresh_resource(memory_store: InMemoryPolicyStore) -> None:
    members = MemberReconciler(memory_store)
    bindings = BindingReconciler(memory_store)

    members.create(DATABASE, EDITOR, "user:alice")
    assert memory_store.get(DATABASE).as_dict() == {EDITOR: ["user:alice"]}

    members.create(DATABASE, EDITOR, "user:bob")
    assert memory_store.get(DATABASE).as_dict() == {EDITOR: ["user:alice", "user:bob"]}

    bindings.delete(DATABASE, EDITOR)
    assert memory_store.get(DATABASE).as_dict() == {}

    with pytest.raises(PolicyNotFoundError):
        members.read(DATABASE, EDITOR, "user:alice")


def test_second_create_raises_and_leaves_policy(memory_store: InMemoryPolicyStore) -> None:
    members = MemberReconciler(memory_store)
    members.create(DATABASE, EDITOR, "user:alice")
    after_first = memory_store.get(DATABASE)

    with pytest.raises(AlreadyExistsError):
        members.create(DATABASE, EDITOR, "user:alice")

    assert memory_store.get(DATABASE) == after_first


@pytest.mark.parametrize("reverse", [False, True])
def test_disjoint_member_adds_commute(reverse: bool) -> None:
    store = InMemoryPolicyStore()
    members = MemberReconciler(store)
    calls = [(EDITOR, "user:p1"), (VIEWER, "user:p2")]

    for role, principal in reversed(calls) if reverse else calls:
        members.create(DATABASE, role, principal)

    assert store.get(DATABASE).as_dict() == {EDITOR: ["user:p1"], VIEWER: ["user:p2"]}


def test_delete_absent_member_leaves_policy() -> None:
    store = seeded_store(DATABASE, {EDITOR: ["user:alice"]})
    before = store.get(DATABASE).as_dict()

    MemberReconciler(store).delete(DATABASE, EDITOR, "user:carol")

    assert store.get(DATABASE).as_dict() == before


def test_binding_update_preserves_other_roles() -> None:
    store = seeded_store(DATABASE, {ADMIN: ["user:a"], VIEWER: ["user:b"]})

    BindingReconciler(store).update(DATABASE, ADMIN, ["user:c"])

    assert store.get(DATABASE).as_dict() == {ADMIN: ["user:c"], VIEWER: ["user:b"]}


@pytest.mark.parametrize(
    "mapping",
    [
        {},
        {EDITOR: ["user:a"]},
        {EDITOR: ["user:a", "user:b"], VIEWER: ["group:g"], ADMIN: []},
    ],
)
def test_flatten_preserves_membership(mapping: dict[str, list[str]]) -> None:
    policy = Policy(bindings=make_bindings(mapping))

    flattened = policy.with_bindings(policy.index().flatten())

    assert flattened.index() == policy.index()
