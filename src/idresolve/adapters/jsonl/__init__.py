"""JSON-lines file format for entities, lookups and lookup results."""

from __future__ import annotations

from .schema import EntityPayload, LookupPayload
from .translator import (
    RecordFormatError,
    parse_entity,
    parse_lookup,
    read_entities,
    read_lookups,
    result_to_payload,
    write_results,
)

__all__ = [
    "EntityPayload",
    "LookupPayload",
    "RecordFormatError",
    "parse_entity",
    "parse_lookup",
    "read_entities",
    "read_lookups",
    "result_to_payload",
    "write_results",
]
