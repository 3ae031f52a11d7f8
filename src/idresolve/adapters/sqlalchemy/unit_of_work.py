"""Engine lifecycle and the SQLAlchemy unit of work used for ingest."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from alembic.util import CommandError
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from idresolve.adapters.sqlalchemy.migrations import upgrade_head
from idresolve.adapters.sqlalchemy.store import SqlAlchemyEntityReader, SqlAlchemyEntityWriter
from idresolve.config import get_database_config
from idresolve.domain.model import IngestError, SchemaError

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call idresolve.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the engine and bring the schema (constraints, indexes) to head."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(database_uri or get_database_config().uri)
    try:
        upgrade_head(engine=resolved_engine)
    except (CommandError, SQLAlchemyError) as exc:
        raise SchemaError(f"Could not prepare the schema: {exc}") from exc

    if _STATE.engine is not None and _STATE.engine is not resolved_engine:
        _STATE.engine.dispose()
    _STATE.engine = resolved_engine
    log.debug("SQLAlchemy adapter started on %s", resolved_engine.url.render_as_string())
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


def entity_reader() -> SqlAlchemyEntityReader:
    engine = _STATE.engine
    if engine is None:
        raise StartupError("SQLAlchemy adapter not initialised")
    return SqlAlchemyEntityReader(engine)


class SqlAlchemyIngestUnitOfWork:
    """One all-or-nothing ingest transaction.

    On PostgreSQL the transaction gets a statement deadline of ``write_timeout_seconds``;
    other backends run without one.
    """

    def __init__(self, *, write_timeout_seconds: float | None = None) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self.write_timeout_seconds = write_timeout_seconds
        self._session: Session | None = None
        self._entities: SqlAlchemyEntityWriter | None = None

    def __enter__(self) -> SqlAlchemyIngestUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = self.session_factory()
        self._entities = SqlAlchemyEntityWriter(self._session)
        self._apply_write_timeout(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self._session = None
        self._entities = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @property
    def entities(self) -> SqlAlchemyEntityWriter:
        if self._entities is None:
            raise StartupError("Unit of work session not initialised")
        return self._entities

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise IngestError(f"Commit failed: {exc}") from exc

    def rollback(self) -> None:
        self.session.rollback()

    def _apply_write_timeout(self, session: Session) -> None:
        if self.write_timeout_seconds is None:
            return
        bind = session.get_bind()
        if bind.dialect.name != "postgresql":
            return
        milliseconds = int(self.write_timeout_seconds * 1000)
        session.execute(text(f"SET LOCAL statement_timeout = {milliseconds}"))


if TYPE_CHECKING:
    from idresolve.domain.ports import EntityReader, IngestUnitOfWork

    _uow_check: IngestUnitOfWork = SqlAlchemyIngestUnitOfWork()

    def _reader_check(engine: Engine) -> EntityReader:
        return SqlAlchemyEntityReader(engine)


__all__ = [
    "SqlAlchemyIngestUnitOfWork",
    "StartupError",
    "configured_engine",
    "entity_reader",
    "is_started",
    "shutdown",
    "startup",
]
