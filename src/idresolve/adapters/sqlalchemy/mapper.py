"""Fold flat lookup rows into entity snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import UUID

from idresolve.domain.model import (
    DetailDuration,
    Entity,
    EntityCountry,
    EntityName,
    Identifier,
    LookupResult,
    MappingError,
    Security,
)

from .lookup import (
    ROW_COUNTRY,
    ROW_ENTITY,
    ROW_IDENTIFIER,
    ROW_NAME,
    ROW_SECURITY,
    ROW_SECURITY_IDENTIFIER,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from idresolve.domain.model import Lookup

log = getLogger(__name__)


@dataclass(slots=True)
class LookupRecord:
    """Everything the rows say about one (lookup, entity) pair.

    Collections keep first-seen order and drop repeats, since joins fan rows out.
    """

    lookup_index: int
    entity_id: str | None
    names: dict[str, None] = field(default_factory=dict)
    countries: dict[str, None] = field(default_factory=dict)
    identifiers: dict[tuple[str, str], None] = field(default_factory=dict)
    securities: dict[str, tuple[str, bool]] = field(default_factory=dict)
    security_identifiers: dict[str, dict[tuple[str, str], None]] = field(default_factory=dict)


def records_from_rows(rows: Iterable[Mapping[str, object]]) -> list[LookupRecord]:
    """Group rows by ``(lookup_index, entity_id)`` in first-seen order."""

    records: dict[tuple[int, str | None], LookupRecord] = {}
    for row in rows:
        lookup_index = _int(row, "lookup_index")
        entity_id = _optional_str(row, "entity_id")
        key = (lookup_index, entity_id)
        record = records.get(key)
        if record is None:
            record = records[key] = LookupRecord(lookup_index=lookup_index, entity_id=entity_id)
        _apply_row(record, row)
    return list(records.values())


def _apply_row(record: LookupRecord, row: Mapping[str, object]) -> None:
    kind = _str(row, "kind")
    if kind == ROW_ENTITY:
        return
    if kind == ROW_NAME:
        record.names.setdefault(_str(row, "item_value"))
    elif kind == ROW_COUNTRY:
        record.countries.setdefault(_str(row, "item_value"))
    elif kind == ROW_IDENTIFIER:
        record.identifiers.setdefault((_str(row, "item_type"), _str(row, "item_value")))
    elif kind == ROW_SECURITY:
        record.securities.setdefault(
            _str(row, "item_key"), (_str(row, "item_value"), _flag(row, "item_flag"))
        )
    elif kind == ROW_SECURITY_IDENTIFIER:
        record.security_identifiers.setdefault(_str(row, "item_key"), {}).setdefault(
            (_str(row, "item_type"), _str(row, "item_value"))
        )
    else:
        raise MappingError(f"Unknown row kind {kind!r}")


def map_record(record: LookupRecord, lookups: Sequence[Lookup]) -> LookupResult:
    """Build the result for one record; found iff an entity id is present.

    The entity carries one untimed entry per attribute: the values active at the
    lookup date.
    """

    try:
        lookup = lookups[record.lookup_index]
    except IndexError as exc:
        raise MappingError(f"Row refers to unknown lookup {record.lookup_index}") from exc

    if record.entity_id is None:
        return LookupResult.not_found(lookup)

    try:
        entity_id = UUID(record.entity_id)
    except ValueError as exc:
        raise MappingError(f"Malformed entity id {record.entity_id!r}") from exc

    entity = Entity(id=entity_id)
    name = _single(record.names, entity_id, "names")
    if name is not None:
        entity.name.append(DetailDuration(EntityName(name)))
    country = _single(record.countries, entity_id, "countries")
    if country is not None:
        entity.country.append(DetailDuration(EntityCountry(country)))
    entity.identifiers.append(
        DetailDuration(tuple(Identifier(kind, value) for kind, value in record.identifiers))
    )
    entity.securities.append(
        DetailDuration(
            tuple(
                Security(
                    name=security_name,
                    identifiers=tuple(
                        Identifier(kind, value)
                        for kind, value in record.security_identifiers.get(security_key, {})
                    ),
                    is_primary=is_primary,
                )
                for security_key, (security_name, is_primary) in record.securities.items()
            )
        )
    )
    return LookupResult.found(lookup, entity)


def _single(values: dict[str, None], entity_id: UUID, attribute: str) -> str | None:
    if not values:
        return None
    first, *rest = values
    if rest:
        log.warning(
            "Entity %s has %s active %s; using %r", entity_id, len(rest) + 1, attribute, first
        )
    return first


def map_rows(
    rows: Iterable[Mapping[str, object]],
    lookups: Sequence[Lookup],
    *,
    include_not_found: bool = True,
) -> list[LookupResult]:
    """Map a lookup result set; any data-shape problem fails the whole read."""

    results = [map_record(record, lookups) for record in records_from_rows(rows)]
    if include_not_found:
        return results
    return [result for result in results if result.success]


def _value(row: Mapping[str, object], column: str) -> object:
    try:
        return row[column]
    except KeyError as exc:
        raise MappingError(f"Row is missing column {column!r}") from exc


def _str(row: Mapping[str, object], column: str) -> str:
    value = _value(row, column)
    if not isinstance(value, str):
        raise MappingError(f"Column {column!r} should be text, got {value!r}")
    return value


def _optional_str(row: Mapping[str, object], column: str) -> str | None:
    if _value(row, column) is None:
        return None
    return _str(row, column)


def _int(row: Mapping[str, object], column: str) -> int:
    value = _value(row, column)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MappingError(f"Column {column!r} should be an integer, got {value!r}")
    return value


def _flag(row: Mapping[str, object], column: str) -> bool:
    value = _value(row, column)
    # SQLite hands booleans back as 0/1
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise MappingError(f"Column {column!r} should be a boolean, got {value!r}")


__all__ = ["LookupRecord", "map_record", "map_rows", "records_from_rows"]
