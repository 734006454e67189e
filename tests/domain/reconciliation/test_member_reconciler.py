from __future__ import annotations

import pytest

from iamsync.adapters.memory import InMemoryPolicyStore
from iamsync.domain.model import AlreadyExistsError, PolicyNotFoundError
from iamsync.domain.reconciliation import MemberReconciler
from tests.helpers.policies import ADMIN, DATABASE, READER, seeded_store


def test_create_adds_member() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a"], ADMIN: ["user:admin"]})

    MemberReconciler(store).create(DATABASE, READER, "user:b")

    assert store.get(DATABASE).as_dict() == {
        ADMIN: ["user:admin"],
        READER: ["user:a", "user:b"],
    }


def test_create_in_new_role(memory_store: InMemoryPolicyStore) -> None:
    MemberReconciler(memory_store).create(DATABASE, READER, "user:a")

    assert memory_store.get(DATABASE).as_dict() == {READER: ["user:a"]}


def test_create_existing_member_raises() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a"]})

    with pytest.raises(AlreadyExistsError) as exc:
        MemberReconciler(store).create(DATABASE, READER, "user:a")

    assert exc.value.principal == "user:a"
    assert store.writes == []


def test_update_is_idempotent() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a"]})
    reconciler = MemberReconciler(store)

    first = reconciler.update(DATABASE, READER, "user:b")
    second = reconciler.update(DATABASE, READER, "user:b")

    assert first.changed is True
    assert second.changed is False
    assert store.get(DATABASE).as_dict() == {READER: ["user:a", "user:b"]}


def test_read_present_member() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a"]})

    assert MemberReconciler(store).read(DATABASE, READER, "user:a") == "user:a"


def test_read_absent_member_raises() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a"]})

    with pytest.raises(PolicyNotFoundError) as exc:
        MemberReconciler(store).read(DATABASE, READER, "user:b")

    assert exc.value.principal == "user:b"


def test_read_missing_policy_raises(memory_store: InMemoryPolicyStore) -> None:
    with pytest.raises(PolicyNotFoundError) as exc:
        MemberReconciler(memory_store).read(DATABASE, READER, "user:a")

    assert isinstance(exc.value.__cause__, PolicyNotFoundError)


def test_delete_leaves_other_members() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a", "user:b"], ADMIN: ["user:admin"]})

    MemberReconciler(store).delete(DATABASE, READER, "user:a")

    assert store.get(DATABASE).as_dict() == {ADMIN: ["user:admin"], READER: ["user:b"]}


def test_delete_last_member_drops_role() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a"], ADMIN: ["user:admin"]})

    MemberReconciler(store).delete(DATABASE, READER, "user:a")

    assert [binding.role for binding in store.get(DATABASE).bindings] == [ADMIN]


def test_delete_absent_member_is_noop() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a"]})

    result = MemberReconciler(store).delete(DATABASE, READER, "user:zzz")

    assert result.changed is False
    assert store.get(DATABASE).as_dict() == {READER: ["user:a"]}


def test_from_import_id_does_not_touch_store() -> None:
    ref = MemberReconciler.from_import_id(f"{DATABASE}/{READER}/members/group:ops@example.com")

    assert ref.resource_id == DATABASE
    assert ref.role == READER
    assert ref.principal == "group:ops@example.com"
