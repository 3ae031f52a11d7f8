"""SQLAlchemy adapter package: the resolution graph stored in relational tables."""

from __future__ import annotations

from .schema import create_all_tables, drop_all_tables, metadata
from .store import SqlAlchemyEntityReader, SqlAlchemyEntityWriter, reset_graph
from .unit_of_work import (
    SqlAlchemyIngestUnitOfWork,
    StartupError,
    configured_engine,
    entity_reader,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyEntityReader",
    "SqlAlchemyEntityWriter",
    "SqlAlchemyIngestUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "drop_all_tables",
    "entity_reader",
    "metadata",
    "reset_graph",
    "shutdown",
    "startup",
]
