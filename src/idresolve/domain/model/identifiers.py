"""External identifiers.

An identifier is a typed code such as an ISIN. ``(type, value)`` is not globally unique
over time: the same pair may belong to different entities at different times, and may
hang off a security rather than the entity itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class IdentifierType(StrEnum):
    RESOLVE_ID = "resolve_id"
    SRAY_ENTITY_ID = "sray_entity_id"
    FS_ENTITY_ID = "fs_entity_id"
    ASSET_ID = "asset_id"
    ISIN = "isin"
    CUSIP = "cusip"
    LEI = "lei"


type IdentifierKind = str | IdentifierType


@dataclass(frozen=True, slots=True)
class Identifier:
    type: IdentifierKind
    value: str

    def __post_init__(self) -> None:
        if not str(self.type).strip():
            raise ValueError("Identifier type must not be blank")
        # the store keys on the plain string; equal types must hash equal
        object.__setattr__(self, "type", str(self.type))

    @property
    def key(self) -> tuple[str, str]:
        return (str(self.type), self.value)

    def __str__(self) -> str:
        return f"{self.type}={self.value}"


def parse_identifier(text: str) -> Identifier:
    """Parse ``TYPE=VALUE`` into an identifier."""

    identifier_type, sep, value = text.partition("=")
    if not sep or not identifier_type.strip() or not value:
        raise ValueError(f"Expected TYPE=VALUE, got {text!r}")
    return Identifier(type=identifier_type.strip(), value=value)


__all__ = ["Identifier", "IdentifierKind", "IdentifierType", "parse_identifier"]
