"""Translate JSON-lines records into domain objects and lookup results back to JSON."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING
from uuid import UUID

from idresolve.domain.model import (
    Entity,
    Identifier,
    Interval,
    Lookup,
    Security,
)

from .schema import EntityPayload, IdentifierPayload, LookupPayload, ValidityPayload

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator
    from datetime import datetime
    from pathlib import Path
    from typing import TextIO

    from pydantic import BaseModel

    from idresolve.domain.model import LookupResult


class RecordFormatError(ValueError):
    """Raised when a JSON-lines record cannot be parsed."""

    def __init__(self, message: str, *, line: int) -> None:
        super().__init__(f"line {line}: {message}")
        self.line = line


def parse_entity(payload: EntityPayload) -> Entity:
    try:
        entity_id = UUID(payload.id)
    except ValueError as exc:
        raise ValueError(f"Invalid entity id {payload.id!r}") from exc

    entity = Entity(id=entity_id)
    for entry in payload.names:
        entity.add_name(entry.value, _interval(entry))
    for entry in payload.countries:
        entity.add_country(entry.value, _interval(entry))
    for entry in payload.identifiers:
        entity.add_identifiers(_identifiers(entry.identifiers), _interval(entry))
    for entry in payload.securities:
        entity.add_securities(
            tuple(
                Security(
                    name=security.name,
                    identifiers=_identifiers(security.identifiers),
                    is_primary=security.is_primary,
                )
                for security in entry.securities
            ),
            _interval(entry),
        )
    return entity


def parse_lookup(payload: LookupPayload) -> Lookup:
    return Lookup(Identifier(payload.type, payload.value), payload.date)


def read_entities(path: Path) -> list[Entity]:
    return list(_read_records(path, EntityPayload, parse_entity))


def read_lookups(path: Path) -> list[Lookup]:
    return list(_read_records(path, LookupPayload, parse_lookup))


def _read_records[TModel: BaseModel, T](
    path: Path, model: type[TModel], parse: Callable[[TModel], T]
) -> Iterator[T]:
    with path.open(encoding="utf-8") as handle:
        for number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            # pydantic's ValidationError is a ValueError too
            try:
                yield parse(model.model_validate_json(line))
            except ValueError as exc:
                raise RecordFormatError(str(exc), line=number) from exc


def _interval(entry: ValidityPayload) -> Interval:
    return Interval(entry.valid_from, entry.valid_until)


def _identifiers(payloads: Iterable[IdentifierPayload]) -> tuple[Identifier, ...]:
    return tuple(Identifier(item.type, item.value) for item in payloads)


def result_to_payload(result: LookupResult) -> dict[str, object]:
    """JSON-ready view of a lookup result."""

    lookup = result.lookup
    payload: dict[str, object] = {
        "lookup": {
            "type": str(lookup.identifier.type),
            "value": lookup.identifier.value,
            "date": _isoformat(lookup.date),
        },
        "success": result.success,
        "entity": None,
    }
    entity = result.entity
    if entity is not None:
        at = lookup.date
        payload["entity"] = {
            "id": str(entity.id),
            "name": entity.name_at(at),
            "country": entity.country_at(at),
            "identifiers": [_identifier_payload(item) for item in entity.identifiers_at(at)],
            "securities": [
                {
                    "name": security.name,
                    "is_primary": security.is_primary,
                    "identifiers": [_identifier_payload(item) for item in security.identifiers],
                }
                for security in entity.securities_at(at)
            ],
        }
    return payload


def write_results(results: Iterable[LookupResult], stream: TextIO) -> int:
    count = 0
    for result in results:
        stream.write(json.dumps(result_to_payload(result)) + "\n")
        count += 1
    return count


def _identifier_payload(identifier: Identifier) -> dict[str, str]:
    return {"type": str(identifier.type), "value": identifier.value}


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


__all__ = [
    "RecordFormatError",
    "parse_entity",
    "parse_lookup",
    "read_entities",
    "read_lookups",
    "result_to_payload",
    "write_results",
]
