"""Entities and their independently versioned attribute timelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from idresolve.domain.model.temporal import (
    DetailDuration,
    Interval,
    active_entries,
    active_value,
    check_timeline,
)

if TYPE_CHECKING:
    from datetime import datetime

    from idresolve.domain.model.identifiers import Identifier


def new_id() -> UUID:
    return uuid4()


@dataclass(frozen=True, slots=True)
class EntityName:
    value: str


@dataclass(frozen=True, slots=True)
class EntityCountry:
    value: str


@dataclass(frozen=True, slots=True)
class Security:
    name: str
    identifiers: tuple[Identifier, ...] = ()
    is_primary: bool = False


@dataclass(eq=False, kw_only=True)
class Entity:
    """Canonical entity; owns four attribute timelines.

    ``id`` is assigned by the caller and never changes once the entity is stored.
    """

    id: UUID
    name: list[DetailDuration[EntityName]] = field(
        default_factory=list["DetailDuration[EntityName]"]
    )
    country: list[DetailDuration[EntityCountry]] = field(
        default_factory=list["DetailDuration[EntityCountry]"]
    )
    identifiers: list[DetailDuration[tuple[Identifier, ...]]] = field(
        default_factory=list["DetailDuration[tuple[Identifier, ...]]"]
    )
    securities: list[DetailDuration[tuple[Security, ...]]] = field(
        default_factory=list["DetailDuration[tuple[Security, ...]]"]
    )

    # Timeline builders ---------------------------------------------------------

    def add_name(self, value: str, interval: Interval) -> None:
        self.name.append(DetailDuration(EntityName(value), interval))

    def add_country(self, value: str, interval: Interval) -> None:
        self.country.append(DetailDuration(EntityCountry(value), interval))

    def add_identifiers(self, identifiers: tuple[Identifier, ...], interval: Interval) -> None:
        self.identifiers.append(DetailDuration(tuple(identifiers), interval))

    def add_securities(self, securities: tuple[Security, ...], interval: Interval) -> None:
        self.securities.append(DetailDuration(tuple(securities), interval))

    # Point-in-time views -------------------------------------------------------

    def name_at(self, at: datetime | None) -> str | None:
        name = active_value(self.name, at)
        return name.value if name is not None else None

    def country_at(self, at: datetime | None) -> str | None:
        country = active_value(self.country, at)
        return country.value if country is not None else None

    def identifiers_at(self, at: datetime | None) -> tuple[Identifier, ...]:
        return _flatten_unique(active_entries(self.identifiers, at))

    def securities_at(self, at: datetime | None) -> tuple[Security, ...]:
        return _flatten_unique(active_entries(self.securities, at))

    def as_of(self, at: datetime | None) -> Entity:
        """Reconstruct the entity as it stood at ``at`` (one untimed entry per attribute)."""

        snapshot = Entity(id=self.id)
        name = active_value(self.name, at)
        if name is not None:
            snapshot.name.append(DetailDuration(name))
        country = active_value(self.country, at)
        if country is not None:
            snapshot.country.append(DetailDuration(country))
        snapshot.identifiers.append(DetailDuration(self.identifiers_at(at)))
        snapshot.securities.append(DetailDuration(self.securities_at(at)))
        return snapshot

    def check_timelines(self) -> None:
        """Raise ``TimelineOverlapError`` if any attribute timeline overlaps itself."""

        check_timeline(self.name, attribute=f"entity {self.id} name")
        check_timeline(self.country, attribute=f"entity {self.id} country")
        check_timeline(self.identifiers, attribute=f"entity {self.id} identifiers")
        check_timeline(self.securities, attribute=f"entity {self.id} securities")


def _flatten_unique[T](groups: list[tuple[T, ...]]) -> tuple[T, ...]:
    seen: list[T] = []
    for group in groups:
        for item in group:
            if item not in seen:
                seen.append(item)
    return tuple(seen)


__all__ = ["Entity", "EntityCountry", "EntityName", "Security", "new_id"]
