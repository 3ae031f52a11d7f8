"""Lookup statements: identifier plus date to the entity snapshot active at that date.

Every lookup travels as one row of a ``lookup_input`` VALUES list. Owning entities are
collected in an ``owner`` CTE and each active attribute comes back as a flat row tagged
with a ``kind``; the mapper folds those rows into entities.

Result columns: ``lookup_index, entity_id, kind, item_key, item_type, item_value,
item_flag``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from .statements import QueryBuilder, Statement, active_predicate, format_timestamp

if TYPE_CHECKING:
    from collections.abc import Sequence

    from idresolve.domain.model import Lookup

ROW_ENTITY: Final[str] = "entity"
ROW_NAME: Final[str] = "name"
ROW_COUNTRY: Final[str] = "country"
ROW_IDENTIFIER: Final[str] = "identifier"
ROW_SECURITY: Final[str] = "security"
ROW_SECURITY_IDENTIFIER: Final[str] = "security_identifier"

_ROW_SEPARATOR = ",\n            "

_DIRECT_OWNER = f"""
        SELECT lookup_input.lookup_index, entity_identifier.entity_id, lookup_input.as_of
        FROM lookup_input
        JOIN identifier
            ON identifier.type = lookup_input.identifier_type
            AND identifier.value = lookup_input.identifier_value
        JOIN entity_identifier ON entity_identifier.identifier_id = identifier.id
        WHERE {active_predicate("entity_identifier", "lookup_input.as_of")}
"""

_SECURITY_OWNER = f"""
        SELECT lookup_input.lookup_index, security.entity_id, lookup_input.as_of
        FROM lookup_input
        JOIN identifier
            ON identifier.type = lookup_input.identifier_type
            AND identifier.value = lookup_input.identifier_value
        JOIN security_identifier ON security_identifier.identifier_id = identifier.id
        JOIN security ON security.id = security_identifier.security_id
        WHERE {active_predicate("security", "lookup_input.as_of")}
"""

_ATTRIBUTES = f"""
    SELECT lookup_input.lookup_index AS lookup_index, owner.entity_id AS entity_id,
        '{ROW_ENTITY}' AS kind, NULL AS item_key, NULL AS item_type,
        NULL AS item_value, NULL AS item_flag
    FROM lookup_input
    LEFT JOIN owner ON owner.lookup_index = lookup_input.lookup_index
    UNION ALL
    SELECT owner.lookup_index, owner.entity_id, '{ROW_NAME}', NULL, NULL,
        entity_name.value, NULL
    FROM owner
    JOIN entity_name ON entity_name.entity_id = owner.entity_id
    WHERE {active_predicate("entity_name", "owner.as_of")}
    UNION ALL
    SELECT owner.lookup_index, owner.entity_id, '{ROW_COUNTRY}', NULL, NULL,
        entity_country.value, NULL
    FROM owner
    JOIN entity_country ON entity_country.entity_id = owner.entity_id
    WHERE {active_predicate("entity_country", "owner.as_of")}
    UNION ALL
    SELECT owner.lookup_index, owner.entity_id, '{ROW_IDENTIFIER}', NULL, identifier.type,
        identifier.value, NULL
    FROM owner
    JOIN entity_identifier ON entity_identifier.entity_id = owner.entity_id
    JOIN identifier ON identifier.id = entity_identifier.identifier_id
    WHERE {active_predicate("entity_identifier", "owner.as_of")}
    UNION ALL
    SELECT owner.lookup_index, owner.entity_id, '{ROW_SECURITY}', security.id, NULL,
        security.name, security.is_primary
    FROM owner
    JOIN security ON security.entity_id = owner.entity_id
    WHERE {active_predicate("security", "owner.as_of")}
    UNION ALL
    SELECT owner.lookup_index, owner.entity_id, '{ROW_SECURITY_IDENTIFIER}', security.id,
        identifier.type, identifier.value, NULL
    FROM owner
    JOIN security ON security.entity_id = owner.entity_id
    JOIN security_identifier ON security_identifier.security_id = security.id
    JOIN identifier ON identifier.id = security_identifier.identifier_id
    WHERE {active_predicate("security", "owner.as_of")}
"""


def build_lookup_statement(lookups: Sequence[Lookup]) -> Statement:
    """One statement resolving every lookup, following security identifiers one hop.

    An identifier may match several entities (directly or through securities), so the
    rows can describe more entities than there are lookups.
    """

    if not lookups:
        raise ValueError("At least one lookup is required")
    qb = QueryBuilder()
    rows = [_lookup_row(qb, index, lookup) for index, lookup in enumerate(lookups)]
    qb.write(f"""
    WITH lookup_input (lookup_index, identifier_type, identifier_value, as_of) AS (
        VALUES
            {_ROW_SEPARATOR.join(rows)}
    ),
    owner (lookup_index, entity_id, as_of) AS (
        {_DIRECT_OWNER}
        UNION
        {_SECURITY_OWNER}
    )
    {_ATTRIBUTES}
    """)
    return qb.build()


def build_direct_lookup_statement(lookup: Lookup, index: int = 0) -> Statement:
    """Statement for a single lookup over identifiers attached to the entity itself.

    Security identifiers are not followed. At most one entity is returned: the one
    whose matching link started most recently.
    """

    qb = QueryBuilder()
    row = _lookup_row(qb, index, lookup)
    qb.write(f"""
    WITH lookup_input (lookup_index, identifier_type, identifier_value, as_of) AS (
        VALUES {row}
    ),
    owner (lookup_index, entity_id, as_of) AS (
        {_DIRECT_OWNER}
        ORDER BY entity_identifier.valid_from DESC, entity_identifier.entity_id
        LIMIT 1
    )
    {_ATTRIBUTES}
    """)
    return qb.build()


def _lookup_row(qb: QueryBuilder, index: int, lookup: Lookup) -> str:
    identifier_type, value = lookup.identifier.key
    prefix = f"lookup_{index}"
    return qb.values_row(
        (f"{prefix}_index", index),
        (f"{prefix}_type", identifier_type),
        (f"{prefix}_value", value),
        (f"{prefix}_as_of", format_timestamp(lookup.date)),
    )


__all__ = [
    "ROW_COUNTRY",
    "ROW_ENTITY",
    "ROW_IDENTIFIER",
    "ROW_NAME",
    "ROW_SECURITY",
    "ROW_SECURITY_IDENTIFIER",
    "build_direct_lookup_statement",
    "build_lookup_statement",
]
