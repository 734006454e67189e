from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from iamsync.adapters.memory import InMemoryPolicyStore
from iamsync.adapters.sqlalchemy import SqlAlchemyPolicyStore
from iamsync.domain.model import BINDINGS_FIELD_MASK, ConcurrentModificationError, Policy
from iamsync.domain.reconciliation import BindingReconciler, MemberReconciler
from tests.helpers.policies import ADMIN, DATABASE, READER, CreatedAfterMissStore, make_bindings

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from iamsync.domain.ports import PolicyStore


@pytest.fixture(params=["memory", "sqlite"])
def etag_store(request: pytest.FixtureRequest) -> PolicyStore:
    if request.param == "memory":
        return InMemoryPolicyStore()
    engine: Engine = request.getfixturevalue("sqlite_engine")
    return SqlAlchemyPolicyStore(engine)


def test_write_without_etag_over_existing_policy_conflicts(etag_store: PolicyStore) -> None:
    etag_store.set(
        DATABASE, Policy(bindings=make_bindings({ADMIN: ["user:admin"]})), BINDINGS_FIELD_MASK
    )

    with pytest.raises(ConcurrentModificationError):
        etag_store.set(
            DATABASE, Policy(bindings=make_bindings({READER: ["user:b"]})), BINDINGS_FIELD_MASK
        )

    assert etag_store.get(DATABASE).as_dict() == {ADMIN: ["user:admin"]}


def test_member_create_keeps_policy_created_after_missing_read(etag_store: PolicyStore) -> None:
    store = CreatedAfterMissStore(inner=etag_store, created={ADMIN: ["user:admin"]})

    result = MemberReconciler(store).create(DATABASE, READER, "user:b")

    assert result.attempts == 2
    assert result.policy.as_dict() == {ADMIN: ["user:admin"], READER: ["user:b"]}
    assert etag_store.get(DATABASE).as_dict() == {ADMIN: ["user:admin"], READER: ["user:b"]}


def test_binding_create_keeps_policy_created_after_missing_read(etag_store: PolicyStore) -> None:
    store = CreatedAfterMissStore(inner=etag_store, created={ADMIN: ["user:admin"]})

    result = BindingReconciler(store).create(DATABASE, READER, ["user:a", "user:b"])

    assert result.attempts == 2
    assert etag_store.get(DATABASE).as_dict() == {
        ADMIN: ["user:admin"],
        READER: ["user:a", "user:b"],
    }
