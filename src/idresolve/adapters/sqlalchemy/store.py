"""SQLAlchemy implementations of the entity reader and writer ports."""

from __future__ import annotations

import time
from logging import DEBUG, getLogger
from typing import TYPE_CHECKING

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from idresolve.config.resolution import DEFAULT_RESET_CHUNK_SIZE
from idresolve.domain.model import IngestError, LookupResult, ResolutionError

from .ingest import encode_entities
from .lookup import build_direct_lookup_statement, build_lookup_statement
from .mapper import map_record, map_rows, records_from_rows
from .schema import DELETE_ORDER

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.engine import Connection, Engine
    from sqlalchemy.orm import Session

    from idresolve.domain.model import Entity, Lookup

    from .statements import Statement

log = getLogger(__name__)


class SqlAlchemyEntityWriter:
    """Write entity batches through the unit of work's session.

    The caller owns the transaction; nothing here commits.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def create_entities(self, entities: Sequence[Entity]) -> None:
        if not entities:
            return
        try:
            batch = encode_entities(entities)
        except ValueError as exc:
            raise IngestError(f"Cannot encode {len(entities)} entities: {exc}") from exc
        if log.isEnabledFor(DEBUG):
            log.debug("Ingest batch:\n%s", batch.render_debug())
        started = time.perf_counter()
        try:
            for statement in batch:
                self.session.execute(statement.clause(), dict(statement.params))
        except SQLAlchemyError as exc:
            raise IngestError(f"Failed to write {len(entities)} entities: {exc}") from exc
        log.debug(
            "Wrote %s entities with %s statements in %.3fs",
            len(entities),
            len(batch),
            time.perf_counter() - started,
        )


class SqlAlchemyEntityReader:
    """Read entity snapshots from the store.

    Every call checks out its own connection from the engine pool, so one reader can
    serve several worker threads. Reads never commit.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def lookup_entities(self, lookups: Sequence[Lookup]) -> list[LookupResult]:
        if not lookups:
            return []
        statement = build_lookup_statement(lookups)
        started = time.perf_counter()
        with self._connect() as connection:
            rows = _fetch(connection, statement)
        results = map_rows(rows, lookups)
        log.debug(
            "Batched lookup of %s identifiers returned %s results in %.3fs",
            len(lookups),
            len(results),
            time.perf_counter() - started,
        )
        return results

    def lookup_direct_entities(self, lookups: Sequence[Lookup]) -> list[LookupResult]:
        results: list[LookupResult] = []
        started = time.perf_counter()
        with self._connect() as connection:
            for lookup in lookups:
                statement = build_direct_lookup_statement(lookup)
                records = records_from_rows(_fetch(connection, statement))
                found = [record for record in records if record.entity_id is not None]
                if found:
                    results.append(map_record(found[0], [lookup]))
                else:
                    results.append(LookupResult.not_found(lookup))
        log.debug(
            "Direct lookup of %s identifiers took %.3fs",
            len(lookups),
            time.perf_counter() - started,
        )
        return results

    def _connect(self) -> Connection:
        try:
            return self.engine.connect()
        except SQLAlchemyError as exc:
            raise ResolutionError(f"Could not connect to the store: {exc}") from exc


def _fetch(connection: Connection, statement: Statement) -> list[dict[str, object]]:
    if log.isEnabledFor(DEBUG):
        log.debug("Lookup statement:\n%s", statement.render_debug())
    try:
        result = connection.execute(statement.clause(), dict(statement.params))
        return [dict(row) for row in result.mappings()]
    except SQLAlchemyError as exc:
        raise ResolutionError(f"Lookup query failed: {exc}") from exc


def reset_graph(engine: Engine, *, chunk_size: int = DEFAULT_RESET_CHUNK_SIZE) -> int:
    """Delete every node and link in bounded chunks; returns the number of rows removed.

    Each chunk commits on its own, so an interrupted reset leaves a partially emptied
    but consistent graph that a rerun finishes.
    """

    if chunk_size < 1:
        raise ValueError("Chunk size must be positive")
    total = 0
    for table in DELETE_ORDER:
        removed = 0
        while True:
            chunk = select(table.c.id).limit(chunk_size)
            with engine.begin() as connection:
                deleted = connection.execute(delete(table).where(table.c.id.in_(chunk))).rowcount
            if not deleted:
                break
            removed += deleted
        if removed:
            log.info("Removed %s rows from %s", removed, table.name)
        total += removed
    return total


__all__ = [
    "SqlAlchemyEntityReader",
    "SqlAlchemyEntityWriter",
    "reset_graph",
]
