"""SQLAlchemy-backed policy store."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import create_engine, insert, select, update
from sqlalchemy.exc import IntegrityError, OperationalError

from iamsync.adapters.memory import apply_field_mask, validate_field_mask
from iamsync.config.storage import get_database_config
from iamsync.domain.model import (
    ConcurrentModificationError,
    Policy,
    PolicyNotFoundError,
    RemoteUnavailableError,
)

from .mappings import bindings_to_json, create_all_tables, iam_policy_table, policy_from_row

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.engine import Connection, Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy store is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the SQLAlchemy engine and create the policy table."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy policy store already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine
    return resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyPolicyStore:
    """``PolicyStore`` persisting one row per resource.

    Writes are conditional on the stored etag, so concurrent writers racing on the same
    row are detected even across processes sharing the database. A policy without an
    etag may only create a row; once the row exists the write is a conflict.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        resolved = engine or _STATE.engine
        if resolved is None:
            raise StartupError(
                "SQLAlchemy policy store not initialised. Call "
                "iamsync.adapters.sqlalchemy.store.startup() or pass an engine."
            )
        self.engine = resolved

    def get(self, resource_id: str) -> Policy:
        stmt = select(iam_policy_table).where(iam_policy_table.c.resource_id == resource_id)
        try:
            with self.engine.connect() as connection:
                row = connection.execute(stmt).mappings().one_or_none()
        except OperationalError as exc:
            raise RemoteUnavailableError(
                f"Could not read policy for resource ({resource_id}): {exc}",
                resource_id=resource_id,
            ) from exc
        if row is None:
            raise PolicyNotFoundError(
                f"No policy stored for resource ({resource_id})",
                resource_id=resource_id,
            )
        return policy_from_row(row)

    def set(self, resource_id: str, policy: Policy, field_mask: Sequence[str]) -> Policy:
        fields = validate_field_mask(field_mask)
        try:
            with self.engine.begin() as connection:
                return self._write(connection, resource_id, policy, fields)
        except IntegrityError as exc:
            raise ConcurrentModificationError(
                f"Policy for resource ({resource_id}) was created concurrently",
                resource_id=resource_id,
            ) from exc
        except OperationalError as exc:
            raise RemoteUnavailableError(
                f"Could not write policy for resource ({resource_id}): {exc}",
                resource_id=resource_id,
            ) from exc

    def _write(
        self,
        connection: Connection,
        resource_id: str,
        policy: Policy,
        fields: frozenset[str],
    ) -> Policy:
        table = iam_policy_table
        row = (
            connection.execute(select(table).where(table.c.resource_id == resource_id))
            .mappings()
            .one_or_none()
        )
        now = datetime.now(UTC)
        new_etag = uuid4().hex

        if row is None:
            written = replace(
                apply_field_mask(Policy(version=policy.version), policy, fields),
                etag=new_etag,
            )
            connection.execute(
                insert(table).values(
                    resource_id=resource_id,
                    version=written.version,
                    etag=new_etag,
                    bindings=bindings_to_json(written.bindings),
                    updated_at=now,
                )
            )
            log.debug("Inserted policy for %s", resource_id)
            return written

        if policy.etag is None:
            raise ConcurrentModificationError(
                f"Policy for resource ({resource_id}) was created concurrently",
                resource_id=resource_id,
            )
        stored = policy_from_row(row)
        written = replace(apply_field_mask(stored, policy, fields), etag=new_etag)
        result = connection.execute(
            update(table)
            .where(table.c.resource_id == resource_id)
            .where(table.c.etag == policy.etag)
            .values(
                version=written.version,
                etag=new_etag,
                bindings=bindings_to_json(written.bindings),
                updated_at=now,
            )
        )
        if result.rowcount == 0:
            raise ConcurrentModificationError(
                f"Stale etag {policy.etag} for resource ({resource_id})",
                resource_id=resource_id,
            )
        log.debug("Updated policy for %s", resource_id)
        return written
