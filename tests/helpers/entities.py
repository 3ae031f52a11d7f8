"""Entity factories and a seeded synthetic graph generator for tests."""

from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from uuid import UUID

from idresolve.domain.model import (
    Entity,
    Identifier,
    IdentifierType,
    Interval,
    Lookup,
    Security,
    new_id,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

GENERATION_START = datetime(2015, 1, 1, tzinfo=UTC)
COUNTRIES = ("US", "GB", "DE", "FR", "JP", "CH")


def utc(year: int, month: int = 1, day: int = 1) -> datetime:
    return datetime(year, month, day, tzinfo=UTC)


def make_entity(
    *,
    entity_id: UUID | None = None,
    name: str = "Acme Holdings",
    identifiers: Sequence[Identifier] = (),
    interval: Interval | None = None,
    country: str | None = None,
    securities: Sequence[Security] = (),
) -> Entity:
    """One entity whose attributes all share ``interval`` (default: open since 2020)."""

    span = interval or Interval(utc(2020))
    entity = Entity(id=entity_id or new_id())
    entity.add_name(name, span)
    if country is not None:
        entity.add_country(country, span)
    if identifiers:
        entity.add_identifiers(tuple(identifiers), span)
    if securities:
        entity.add_securities(tuple(securities), span)
    return entity


def generate_entities(count: int, *, seed: int = 7) -> list[Entity]:
    """Synthetic entities with realistic attribute churn.

    Each entity gets 0-2 name changes, 0-1 country changes, a ``resolve_id`` that never
    ends and ``sray_entity_id``/``fs_entity_id`` that are dropped at a later date 30% of
    the time, plus 0-4 securities whose ``asset_id``/``isin``/``cusip`` are each present
    with 80% probability. The first security is the primary one.
    """

    rng = random.Random(seed)
    return [_generate_entity(rng, index) for index in range(count)]


def _generate_entity(rng: random.Random, index: int) -> Entity:
    entity = Entity(id=UUID(int=rng.getrandbits(128), version=4))
    start = GENERATION_START + timedelta(days=rng.randrange(0, 365))

    name_changes = _change_points(rng, start, rng.randint(0, 2))
    for version, (begin, end) in enumerate(_spans(start, name_changes)):
        entity.add_name(f"Entity {index} v{version}", Interval(begin, end))

    country_changes = _change_points(rng, start, rng.randint(0, 1))
    countries = rng.sample(COUNTRIES, k=len(country_changes) + 1)
    for country, (begin, end) in zip(countries, _spans(start, country_changes), strict=True):
        entity.add_country(country, Interval(begin, end))

    resolve_id = Identifier(IdentifierType.RESOLVE_ID, f"R{index:06d}")
    external = (
        Identifier(IdentifierType.SRAY_ENTITY_ID, f"S{index:06d}"),
        Identifier(IdentifierType.FS_ENTITY_ID, f"F{index:06d}"),
    )
    if rng.random() < 0.3:
        dropped_at = start + timedelta(days=rng.randrange(30, 1500))
        entity.add_identifiers((resolve_id, *external), Interval(start, dropped_at))
        entity.add_identifiers((resolve_id,), Interval(dropped_at))
    else:
        entity.add_identifiers((resolve_id, *external), Interval(start))

    securities: list[Security] = []
    for number in range(rng.randint(0, 4)):
        candidates = (
            Identifier(IdentifierType.ASSET_ID, f"A{index:06d}{number}"),
            Identifier(IdentifierType.ISIN, f"XS{index:06d}{number:04d}"),
            Identifier(IdentifierType.CUSIP, f"C{index:06d}{number}"),
        )
        securities.append(
            Security(
                name=f"Entity {index} security {number}",
                identifiers=tuple(item for item in candidates if rng.random() < 0.8),
                is_primary=number == 0,
            )
        )
    if securities:
        entity.add_securities(tuple(securities), Interval(start))
    return entity


def _change_points(rng: random.Random, start: datetime, count: int) -> list[datetime]:
    days = sorted(rng.sample(range(30, 2500), k=count))
    return [start + timedelta(days=day) for day in days]


def _spans(
    start: datetime, changes: list[datetime]
) -> list[tuple[datetime, datetime | None]]:
    bounds: list[datetime | None] = [*changes, None]
    spans: list[tuple[datetime, datetime | None]] = []
    begin = start
    for end in bounds:
        spans.append((begin, end))
        if end is not None:
            begin = end
    return spans


def resolve_id_lookups(entities: Sequence[Entity], at: datetime | None = None) -> list[Lookup]:
    """One lookup per entity on its ``resolve_id``, which is active from its first day."""

    lookups: list[Lookup] = []
    for entity in entities:
        identifiers = entity.identifiers[0].detail
        resolve_id = next(item for item in identifiers if item.type == IdentifierType.RESOLVE_ID)
        lookups.append(Lookup(resolve_id, at))
    return lookups


__all__ = [
    "COUNTRIES",
    "GENERATION_START",
    "generate_entities",
    "make_entity",
    "resolve_id_lookups",
    "utc",
]
