"""Ports the resolution core requires from the backing store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from idresolve.domain.model import Entity, Lookup, LookupResult


@runtime_checkable
class EntityWriter(Protocol):
    """Append-only write contract: creates nodes and links, never updates or deletes."""

    def create_entities(self, entities: Sequence[Entity]) -> None:
        """Create ``entities`` with their full attribute history in one bulk operation."""
        ...


@runtime_checkable
class EntityReader(Protocol):
    """Read-only lookup contract.

    Implementations must be safe to call from several threads at once; concurrent
    resolution shares one reader across its workers.
    """

    def lookup_entities(self, lookups: Sequence[Lookup]) -> list[LookupResult]:
        """Resolve all lookups in one read, following at most one security hop."""
        ...

    def lookup_direct_entities(self, lookups: Sequence[Lookup]) -> list[LookupResult]:
        """Resolve lookups one read at a time against entity-attached identifiers only."""
        ...
