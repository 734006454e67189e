from __future__ import annotations

import pytest

from iamsync.domain.model import (
    InvalidResourceNameError,
    ResourceKind,
    parse_binding_import_id,
    parse_member_import_id,
    parse_resource_name,
)
from iamsync.domain.model.errors import describe_target
from tests.helpers.policies import DATABASE, READER, TABLE


def test_parse_spanner_database() -> None:
    name = parse_resource_name(DATABASE)

    assert name.kind is ResourceKind.SPANNER_DATABASE
    assert (name.project, name.instance, name.name) == ("p1", "i1", "d1")
    assert str(name) == DATABASE


def test_parse_bigtable_table() -> None:
    name = parse_resource_name(TABLE)

    assert name.kind is ResourceKind.BIGTABLE_TABLE
    assert name.collection == "tables"
    assert str(name) == TABLE


@pytest.mark.parametrize(
    "value",
    [
        "",
        "projects/p1",
        "projects/p1/instances/i1/databases",
        "projects/p1/instances/i1/buckets/b1",
        "projects/p1/instances/i1/databases/d1/extra",
    ],
)
def test_parse_resource_name_rejects_invalid(value: str) -> None:
    with pytest.raises(InvalidResourceNameError) as exc:
        parse_resource_name(value)

    assert exc.value.name == value


def test_parse_binding_import_id_keeps_full_role() -> None:
    ref = parse_binding_import_id(f"{DATABASE}/{READER}")

    assert ref.resource_id == DATABASE
    assert ref.role == READER
    assert ref.import_id == f"{DATABASE}/{READER}"


def test_parse_binding_import_id_accepts_custom_role() -> None:
    role = "projects/p1/roles/customReader"

    ref = parse_binding_import_id(f"{TABLE}/{role}")

    assert ref.role == role
    assert ref.resource_id == TABLE


def test_parse_member_import_id() -> None:
    ref = parse_member_import_id(f"{DATABASE}/{READER}/members/user:alice@example.com")

    assert ref.resource_id == DATABASE
    assert ref.role == READER
    assert ref.principal == "user:alice@example.com"
    assert ref.import_id == f"{DATABASE}/{READER}/members/user:alice@example.com"


def test_invalid_import_ids_are_rejected() -> None:
    with pytest.raises(InvalidResourceNameError):
        parse_binding_import_id(DATABASE)
    with pytest.raises(InvalidResourceNameError):
        parse_member_import_id(f"{DATABASE}/{READER}")


def test_describe_target() -> None:
    assert describe_target(DATABASE, READER, "user:a") == (
        f"member (user:a) in role ({READER}) in resource ({DATABASE})"
    )
    assert describe_target(None) == "policy"
