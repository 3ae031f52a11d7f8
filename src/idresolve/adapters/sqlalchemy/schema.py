"""Relational rendering of the resolution graph.

Node tables: ``entity``, ``identifier``, ``security``; name and country values live on
their link rows. Link tables carry ``valid_from``/``valid_until`` as fixed-width UTC
ISO-8601 strings so that string comparison orders them chronologically.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

log = logging.getLogger(__name__)

TIMESTAMP_LENGTH: Final[int] = 27
UUID_LENGTH: Final[int] = 36

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


def _timestamp(name: str, *, nullable: bool) -> Column[str]:
    return Column(name, String(TIMESTAMP_LENGTH), nullable=nullable)


entity_table = Table(
    "entity",
    metadata,
    Column("id", String(UUID_LENGTH), primary_key=True),
)

entity_name_table = Table(
    "entity_name",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "entity_id",
        String(UUID_LENGTH),
        ForeignKey("entity.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("value", String, nullable=False),
    _timestamp("valid_from", nullable=False),
    _timestamp("valid_until", nullable=True),
    Index("ix_entity_name_entity", "entity_id"),
)

entity_country_table = Table(
    "entity_country",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "entity_id",
        String(UUID_LENGTH),
        ForeignKey("entity.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("value", String, nullable=False),
    _timestamp("valid_from", nullable=False),
    _timestamp("valid_until", nullable=True),
    Index("ix_entity_country_entity", "entity_id"),
)

identifier_table = Table(
    "identifier",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("type", String, nullable=False),
    Column("value", String, nullable=False),
    UniqueConstraint("type", "value", name="uq_identifier_type_value"),
)

entity_identifier_table = Table(
    "entity_identifier",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "entity_id",
        String(UUID_LENGTH),
        ForeignKey("entity.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "identifier_id",
        Integer,
        ForeignKey("identifier.id", ondelete="CASCADE"),
        nullable=False,
    ),
    _timestamp("valid_from", nullable=False),
    _timestamp("valid_until", nullable=True),
    Index("ix_entity_identifier_identifier", "identifier_id"),
    Index("ix_entity_identifier_entity", "entity_id"),
    Index("ix_entity_identifier_duration", "valid_from", "valid_until"),
)

security_table = Table(
    "security",
    metadata,
    Column("id", String(UUID_LENGTH), primary_key=True),
    Column(
        "entity_id",
        String(UUID_LENGTH),
        ForeignKey("entity.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("name", String, nullable=False),
    Column("is_primary", Boolean, nullable=False, default=False),
    _timestamp("valid_from", nullable=False),
    _timestamp("valid_until", nullable=True),
    Index("ix_security_entity", "entity_id"),
)

# security identifiers have no interval of their own; the security's link governs them
security_identifier_table = Table(
    "security_identifier",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "security_id",
        String(UUID_LENGTH),
        ForeignKey("security.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "identifier_id",
        Integer,
        ForeignKey("identifier.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Index("ix_security_identifier_identifier", "identifier_id"),
    Index("ix_security_identifier_security", "security_id"),
)

# children before parents, for chunked deletes
DELETE_ORDER: Final[tuple[Table, ...]] = (
    security_identifier_table,
    security_table,
    entity_identifier_table,
    entity_country_table,
    entity_name_table,
    identifier_table,
    entity_table,
)


def create_all_tables(bind: Engine | Connection) -> None:
    """Create the graph tables directly, bypassing migrations."""

    log.info("Creating all tables")
    metadata.create_all(bind)


def drop_all_tables(bind: Engine | Connection) -> None:
    log.info("Dropping all tables")
    metadata.drop_all(bind)


__all__ = [
    "DELETE_ORDER",
    "create_all_tables",
    "drop_all_tables",
    "entity_country_table",
    "entity_identifier_table",
    "entity_name_table",
    "entity_table",
    "identifier_table",
    "metadata",
    "security_identifier_table",
    "security_table",
]
