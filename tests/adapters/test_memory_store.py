from __future__ import annotations

from dataclasses import replace

import pytest

from iamsync.adapters.memory import InMemoryPolicyStore, validate_field_mask
from iamsync.domain.model import (
    BINDINGS_FIELD_MASK,
    ConcurrentModificationError,
    Policy,
    PolicyNotFoundError,
)
from iamsync.domain.ports import PolicyStore
from tests.helpers.policies import DATABASE, READER, make_bindings


def test_memory_store_satisfies_port() -> None:
    assert isinstance(InMemoryPolicyStore(), PolicyStore)


def test_get_missing_raises(memory_store: InMemoryPolicyStore) -> None:
    with pytest.raises(PolicyNotFoundError) as exc:
        memory_store.get(DATABASE)

    assert exc.value.resource_id == DATABASE


def test_set_assigns_new_etag(memory_store: InMemoryPolicyStore) -> None:
    first = memory_store.set(
        DATABASE, Policy(bindings=make_bindings({READER: ["user:a"]})), BINDINGS_FIELD_MASK
    )
    second = memory_store.set(DATABASE, first, BINDINGS_FIELD_MASK)

    assert first.etag is not None
    assert second.etag != first.etag
    assert memory_store.get(DATABASE) == second


def test_stale_etag_is_rejected(memory_store: InMemoryPolicyStore) -> None:
    seeded = memory_store.seed(DATABASE, make_bindings({READER: ["user:a"]}))
    memory_store.set(DATABASE, seeded, BINDINGS_FIELD_MASK)

    with pytest.raises(ConcurrentModificationError):
        memory_store.set(DATABASE, seeded, BINDINGS_FIELD_MASK)


def test_stale_etag_accepted_without_checks() -> None:
    store = InMemoryPolicyStore(check_etag=False)
    seeded = store.seed(DATABASE, make_bindings({READER: ["user:a"]}))
    store.set(DATABASE, seeded, BINDINGS_FIELD_MASK)

    store.set(DATABASE, seeded.with_bindings(()), BINDINGS_FIELD_MASK)

    assert store.get(DATABASE).bindings == ()


def test_bindings_mask_keeps_stored_version(memory_store: InMemoryPolicyStore) -> None:
    seeded = memory_store.seed(DATABASE)

    written = memory_store.set(DATABASE, replace(seeded, version=1), BINDINGS_FIELD_MASK)

    assert written.version == seeded.version


def test_initial_policies_receive_etags() -> None:
    store = InMemoryPolicyStore({DATABASE: Policy(bindings=make_bindings({READER: ["user:a"]}))})

    assert store.get(DATABASE).etag is not None


@pytest.mark.parametrize("mask", [(), ("bindings", "etag")])
def test_invalid_field_masks(mask: tuple[str, ...]) -> None:
    with pytest.raises(ValueError, match="[Ff]ield mask"):
        validate_field_mask(mask)
