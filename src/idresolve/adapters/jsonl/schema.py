"""Pydantic models describing the JSON-lines entity and lookup records."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class RecordModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class IdentifierPayload(RecordModel):
    type: str = Field(min_length=1)
    value: str = Field(min_length=1)


class ValidityPayload(RecordModel):
    valid_from: datetime
    valid_until: datetime | None = None

    _normalize_until = field_validator("valid_until", mode="before")(_blank_to_none)


class ValuePayload(ValidityPayload):
    value: str


class IdentifierSetPayload(ValidityPayload):
    identifiers: list[IdentifierPayload] = Field(default_factory=list)


class SecurityPayload(RecordModel):
    name: str
    is_primary: bool = False
    identifiers: list[IdentifierPayload] = Field(default_factory=list)


class SecuritySetPayload(ValidityPayload):
    securities: list[SecurityPayload] = Field(default_factory=list)


class EntityPayload(RecordModel):
    id: str
    names: list[ValuePayload] = Field(default_factory=list)
    countries: list[ValuePayload] = Field(default_factory=list)
    identifiers: list[IdentifierSetPayload] = Field(default_factory=list)
    securities: list[SecuritySetPayload] = Field(default_factory=list)


class LookupPayload(RecordModel):
    type: str = Field(min_length=1)
    value: str = Field(min_length=1)
    date: datetime | None = None

    _normalize_date = field_validator("date", mode="before")(_blank_to_none)


__all__ = [
    "EntityPayload",
    "IdentifierPayload",
    "IdentifierSetPayload",
    "LookupPayload",
    "SecurityPayload",
    "SecuritySetPayload",
    "ValuePayload",
]
