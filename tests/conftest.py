from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from iamsync.adapters.memory import InMemoryPolicyStore
from iamsync.adapters.sqlalchemy import shutdown, startup

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "IAMSYNC_STORE",
        "IAMSYNC_ACCESS_TOKEN",
        "IAMSYNC_SPANNER_API_BASE_URL",
        "IAMSYNC_BIGTABLE_API_BASE_URL",
        "IAMSYNC_MAX_CONFLICT_RETRIES",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def memory_store() -> InMemoryPolicyStore:
    return InMemoryPolicyStore()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    startup(engine=engine, force=True)
    try:
        yield engine
    finally:
        shutdown()
