"""SQLAlchemy table metadata for stored IAM policies."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
)

from iamsync.domain.model import Binding, Policy

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine, RowMapping

log = getLogger(__name__)

metadata = MetaData()


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


iam_policy_table = Table(
    "iam_policy",
    metadata,
    Column("resource_id", String, primary_key=True),
    Column("version", Integer, nullable=False),
    Column("etag", String, nullable=False),
    Column("bindings", JSON, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
)


def create_all_tables(engine: Engine) -> None:
    log.info("Creating policy tables")
    metadata.create_all(engine, checkfirst=True)


def bindings_to_json(bindings: tuple[Binding, ...]) -> list[dict[str, Any]]:
    return [
        {"role": binding.role, "members": binding.sorted_principals()} for binding in bindings
    ]


def policy_from_row(row: RowMapping) -> Policy:
    bindings = tuple(
        Binding.of(item["role"], item.get("members", ())) for item in row["bindings"]
    )
    return Policy(bindings=bindings, version=row["version"], etag=row["etag"])
