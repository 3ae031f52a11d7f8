"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from idresolve.adapters.sqlalchemy.store import reset_graph
from idresolve.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyIngestUnitOfWork,
    configured_engine,
    entity_reader,
    is_started,
    startup,
)
from idresolve.config import get_resolution_config
from idresolve.domain.ingest import IngestResult
from idresolve.domain.ingest import ingest_entities as ingest_entity_batches
from idresolve.domain.model import LookupStrategy
from idresolve.domain.ports import IngestUnitOfWork
from idresolve.domain.resolution import resolve_lookups

if TYPE_CHECKING:
    from collections.abc import Sequence

    from idresolve.config import ResolutionConfig
    from idresolve.domain.model import Entity, Lookup, LookupResult
    from idresolve.domain.ports import EntityReader

UnitOfWorkFactory = Callable[[], IngestUnitOfWork]


log = getLogger(__name__)


def _ensure_started() -> None:
    if not is_started():
        startup()


def initialise_store() -> None:
    """Create or upgrade the graph schema, including constraints and indexes."""

    _ensure_started()
    log.info("Store schema is at head")


def ingest_entities(
    entities: Sequence[Entity],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    batch_size: int | None = None,
    validate: bool = True,
    config: ResolutionConfig | None = None,
) -> IngestResult:
    """Write entities with their full attribute history using the configured store."""

    settings = config or get_resolution_config()
    effective_batch_size = settings.ingest_batch_size if batch_size is None else batch_size
    if unit_of_work_factory is None:
        _ensure_started()
        unit_of_work_factory = partial(
            SqlAlchemyIngestUnitOfWork, write_timeout_seconds=settings.write_timeout_seconds
        )

    log.info(
        "Starting ingest: entities=%s, batch_size=%s", len(entities), effective_batch_size
    )
    result = ingest_entity_batches(
        entities,
        unit_of_work_factory=unit_of_work_factory,
        batch_size=effective_batch_size,
        validate=validate,
    )
    log.info(f"Finished ingest: stored={result.stored}, batches={result.batches}")
    return result


def resolve(
    lookups: Sequence[Lookup],
    *,
    strategy: LookupStrategy = LookupStrategy.BATCHED,
    workers: int | None = None,
    reader: EntityReader | None = None,
    config: ResolutionConfig | None = None,
) -> list[LookupResult]:
    """Resolve identifier lookups against the configured store."""

    settings = config or get_resolution_config()
    if reader is None:
        _ensure_started()
        reader = entity_reader()
    return resolve_lookups(
        lookups,
        reader=reader,
        strategy=strategy,
        workers=settings.workers if workers is None else workers,
        timeout=settings.lookup_timeout_seconds,
    )


def reset_store(*, config: ResolutionConfig | None = None) -> int:
    """Remove every entity, identifier and link from the store."""

    settings = config or get_resolution_config()
    _ensure_started()
    engine = configured_engine()
    if engine is None:
        raise RuntimeError("Store engine is not configured")
    removed = reset_graph(engine, chunk_size=settings.reset_chunk_size)
    log.info("Reset store: removed %s rows", removed)
    return removed
