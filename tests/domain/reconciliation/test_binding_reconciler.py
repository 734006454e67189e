from __future__ import annotations

import pytest

from iamsync.adapters.memory import InMemoryPolicyStore
from iamsync.domain.model import AlreadyManagedError, PolicyNotFoundError
from iamsync.domain.reconciliation import BindingReconciler
from tests.helpers.policies import ADMIN, DATABASE, READER, USER, seeded_store


def test_create_sets_role_and_preserves_others() -> None:
    store = seeded_store(DATABASE, {ADMIN: ["user:admin"]})

    BindingReconciler(store).create(DATABASE, READER, ["user:a", "user:b"])

    assert store.get(DATABASE).as_dict() == {
        ADMIN: ["user:admin"],
        READER: ["user:a", "user:b"],
    }


def test_create_on_missing_policy(memory_store: InMemoryPolicyStore) -> None:
    BindingReconciler(memory_store).create(DATABASE, READER, ["user:a"])

    assert memory_store.get(DATABASE).as_dict() == {READER: ["user:a"]}


def test_create_refuses_role_with_members() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a"]})

    with pytest.raises(AlreadyManagedError) as exc:
        BindingReconciler(store).create(DATABASE, READER, ["user:b"])

    assert exc.value.role == READER
    assert exc.value.resource_id == DATABASE
    assert store.writes == []


def test_update_replaces_role_members() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a"], ADMIN: ["user:admin"]})

    BindingReconciler(store).update(DATABASE, READER, ["user:c"])

    assert store.get(DATABASE).as_dict() == {ADMIN: ["user:admin"], READER: ["user:c"]}


def test_update_with_no_members_removes_role() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a"], ADMIN: ["user:admin"]})

    BindingReconciler(store).update(DATABASE, READER, [])

    assert store.get(DATABASE).as_dict() == {ADMIN: ["user:admin"]}


def test_read_returns_binding() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a", "user:b"]})

    binding = BindingReconciler(store).read(DATABASE, READER)

    assert binding.role == READER
    assert binding.sorted_principals() == ["user:a", "user:b"]


def test_read_missing_role_raises() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a"]})

    with pytest.raises(PolicyNotFoundError):
        BindingReconciler(store).read(DATABASE, USER)


def test_read_missing_policy_raises(memory_store: InMemoryPolicyStore) -> None:
    with pytest.raises(PolicyNotFoundError):
        BindingReconciler(memory_store).read(DATABASE, READER)


def test_delete_removes_only_that_role() -> None:
    store = seeded_store(DATABASE, {READER: ["user:a"], ADMIN: ["user:admin"]})

    BindingReconciler(store).delete(DATABASE, READER)

    assert store.get(DATABASE).as_dict() == {ADMIN: ["user:admin"]}


def test_delete_absent_role_is_unchanged() -> None:
    store = seeded_store(DATABASE, {ADMIN: ["user:admin"]})

    result = BindingReconciler(store).delete(DATABASE, READER)

    assert result.changed is False


def test_from_import_id_does_not_touch_store() -> None:
    ref = BindingReconciler.from_import_id(f"{DATABASE}/{READER}")

    assert (ref.resource_id, ref.role) == (DATABASE, READER)
