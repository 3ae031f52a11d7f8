"""Lookup requests and results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from idresolve.domain.model.temporal import ensure_utc

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from idresolve.domain.model.entity import Entity
    from idresolve.domain.model.identifiers import Identifier


class LookupStrategy(StrEnum):
    """How a batch of lookups is executed against the store.

    - ``BATCHED``: one read for the whole batch. Resolves identifiers attached to the
      entity or to one of its securities. Results are unordered and one lookup may
      produce several results (one per matching entity) when identifiers are shared.
    - ``DIRECT``: one read per lookup, entity-attached identifiers only (no security
      hop). Exactly one result per lookup, in input order.
    - ``CONCURRENT``: ``BATCHED`` run over contiguous chunks on a worker pool. Same
      coverage and cardinality as ``BATCHED``; ordering follows worker completion.
    """

    BATCHED = "batched"
    DIRECT = "direct"
    CONCURRENT = "concurrent"


@dataclass(frozen=True, slots=True)
class Lookup:
    """An identifier plus the instant to resolve it at (``None`` = current)."""

    identifier: Identifier
    date: datetime | None = None

    def __post_init__(self) -> None:
        if self.date is not None:
            object.__setattr__(self, "date", ensure_utc(self.date))


@dataclass(frozen=True, slots=True)
class LookupResult:
    """Outcome of one lookup.

    ``entity`` carries only the attribute values active at the lookup date, each as a
    single untimed timeline entry.
    """

    lookup: Lookup
    success: bool
    entity: Entity | None = None

    @property
    def entity_id(self) -> UUID | None:
        return self.entity.id if self.entity is not None else None

    @classmethod
    def not_found(cls, lookup: Lookup) -> LookupResult:
        return cls(lookup=lookup, success=False)

    @classmethod
    def found(cls, lookup: Lookup, entity: Entity) -> LookupResult:
        return cls(lookup=lookup, success=True, entity=entity)


__all__ = ["Lookup", "LookupResult", "LookupStrategy"]
