"""Application service for ingesting entities with their attribute history."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from idresolve.domain.model import IngestError, InvalidEntityError

DEFAULT_INGEST_BATCH_SIZE = 500

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence
    from uuid import UUID

    from idresolve.domain.model import DetailDuration, Entity
    from idresolve.domain.ports import IngestUnitOfWork


log = getLogger(__name__)


@dataclass(slots=True)
class IngestResult:
    """Outcome of an ingest run."""

    stored: int
    batches: int


def validate_entities(entities: Sequence[Entity]) -> None:
    """Check caller-side invariants before anything is written.

    Entity ids must be set (the store never generates them) and unique within the
    input; every attribute timeline entry must carry an interval, and no two entries
    of one timeline may overlap.
    """

    seen: set[UUID] = set()
    for entity in entities:
        if entity.id.int == 0:
            raise InvalidEntityError("Entity id must be set before ingest")
        if entity.id in seen:
            raise InvalidEntityError(f"Entity {entity.id} appears more than once")
        seen.add(entity.id)
        _require_intervals(entity)
        entity.check_timelines()


def _require_intervals(entity: Entity) -> None:
    timelines: tuple[tuple[str, Sequence[DetailDuration[object]]], ...] = (
        ("name", entity.name),
        ("country", entity.country),
        ("identifiers", entity.identifiers),
        ("securities", entity.securities),
    )
    for attribute, timeline in timelines:
        for position, entry in enumerate(timeline):
            if entry.interval is None:
                raise InvalidEntityError(
                    f"Entity {entity.id} {attribute} entry {position} has no interval"
                )


def iter_batches[T](items: Sequence[T], batch_size: int) -> Iterator[Sequence[T]]:
    if batch_size < 1:
        raise ValueError("Batch size must be positive")
    for start in range(0, len(items), batch_size):
        yield items[start : start + batch_size]


def ingest_entities(
    entities: Sequence[Entity],
    *,
    unit_of_work_factory: Callable[[], IngestUnitOfWork],
    batch_size: int = DEFAULT_INGEST_BATCH_SIZE,
    validate: bool = True,
) -> IngestResult:
    """Write ``entities`` in batches, one all-or-nothing transaction per batch.

    Ingest is append-only and not idempotent: re-ingesting an entity creates duplicate
    links (and fails on the entity id constraint). When a batch fails, earlier batches
    stay committed and ``IngestError.batch`` names the batch to retry.
    """

    if validate:
        validate_entities(entities)

    stored = 0
    batches = 0
    for number, batch in enumerate(iter_batches(entities, batch_size)):
        try:
            with unit_of_work_factory() as uow:
                uow.entities.create_entities(batch)
                uow.commit()
        except IngestError as exc:
            exc.batch = number
            raise
        stored += len(batch)
        batches += 1
        log.info("Ingested batch %s: %s entities (%s total)", number, len(batch), stored)

    return IngestResult(stored=stored, batches=batches)


__all__ = [
    "DEFAULT_INGEST_BATCH_SIZE",
    "IngestResult",
    "ingest_entities",
    "iter_batches",
    "validate_entities",
]
