from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from idresolve.adapters.sqlalchemy.migrations import upgrade_head
from idresolve.adapters.sqlalchemy.store import SqlAlchemyEntityReader
from idresolve.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyIngestUnitOfWork,
    shutdown,
    startup,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep every test away from the user's data dir and from a previous test's engine."""

    monkeypatch.setenv("IDRESOLVE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("DATABASE_URI", f"sqlite+pysqlite:///{tmp_path / 'default.db'}")
    for name in (
        "IDRESOLVE_WORKERS",
        "IDRESOLVE_INGEST_BATCH_SIZE",
        "IDRESOLVE_WRITE_TIMEOUT_SECONDS",
        "IDRESOLVE_LOOKUP_TIMEOUT_SECONDS",
        "IDRESOLVE_RESET_CHUNK_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)
    try:
        yield
    finally:
        shutdown()


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    # file-backed so that concurrent lookup workers each get their own connection
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'graph.db'}")
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyIngestUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyIngestUnitOfWork:
        return SqlAlchemyIngestUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def sqlite_reader(sqlite_engine: Engine) -> SqlAlchemyEntityReader:
    return SqlAlchemyEntityReader(sqlite_engine)
