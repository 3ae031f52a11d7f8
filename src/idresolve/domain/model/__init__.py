"""Public domain model surface."""

from __future__ import annotations

from idresolve.domain.model.entity import Entity, EntityCountry, EntityName, Security, new_id
from idresolve.domain.model.errors import (
    IngestError,
    InvalidEntityError,
    InvalidIntervalError,
    MappingError,
    PartialResolutionError,
    ResolutionError,
    ResolutionTimeoutError,
    SchemaError,
    StoreError,
    TimelineOverlapError,
)
from idresolve.domain.model.identifiers import (
    Identifier,
    IdentifierKind,
    IdentifierType,
    parse_identifier,
)
from idresolve.domain.model.lookup import Lookup, LookupResult, LookupStrategy
from idresolve.domain.model.temporal import (
    DetailDuration,
    Interval,
    Timeline,
    active_entries,
    active_value,
    check_timeline,
    ensure_utc,
    find_overlaps,
    is_active,
)

__all__ = [
    "DetailDuration",
    "Entity",
    "EntityCountry",
    "EntityName",
    "Identifier",
    "IdentifierKind",
    "IdentifierType",
    "IngestError",
    "Interval",
    "InvalidEntityError",
    "InvalidIntervalError",
    "Lookup",
    "LookupResult",
    "LookupStrategy",
    "MappingError",
    "PartialResolutionError",
    "ResolutionError",
    "ResolutionTimeoutError",
    "SchemaError",
    "Security",
    "StoreError",
    "Timeline",
    "TimelineOverlapError",
    "active_entries",
    "active_value",
    "check_timeline",
    "ensure_utc",
    "find_overlaps",
    "is_active",
    "new_id",
    "parse_identifier",
]
