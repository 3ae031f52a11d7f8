"""Encode a batch of entities, with full attribute history, as one bulk create.

The batch is a fixed sequence of multi-row statements run in a single transaction:
entities, name links, country links, identifier nodes (create-or-reuse on
``(type, value)``), identifier links, securities, then security identifier links.
Nothing is updated or deleted, so re-encoding the same entities duplicates links.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from .statements import QueryBuilder, Statement, StatementBatch, format_timestamp

if TYPE_CHECKING:
    from collections.abc import Sequence

    from idresolve.domain.model import Entity, Identifier, Interval

    from .statements import ParamValue

type SecurityIdFactory = Callable[[], UUID]

_ROW_SEPARATOR = ",\n            "


@dataclass(slots=True)
class _Rows:
    """Rows for one multi-row ``VALUES`` list, bound into a shared builder."""

    builder: QueryBuilder = field(default_factory=QueryBuilder)
    rows: list[str] = field(default_factory=list[str])

    def add(self, *bindings: tuple[str, ParamValue]) -> None:
        self.rows.append(self.builder.values_row(*bindings))

    def __bool__(self) -> bool:
        return bool(self.rows)

    def joined(self) -> str:
        return _ROW_SEPARATOR.join(self.rows)


def encode_entities(
    entities: Sequence[Entity],
    *,
    security_id_factory: SecurityIdFactory = uuid4,
) -> StatementBatch:
    """Build the statements creating ``entities`` and every timeline entry they carry."""

    entity_rows = _Rows()
    name_rows = _Rows()
    country_rows = _Rows()
    identifier_nodes: dict[tuple[str, str], None] = {}
    identifier_links = _Rows()
    security_rows = _Rows()
    security_identifier_links = _Rows()

    for i, entity in enumerate(entities):
        entity_key = f"entity_{i}"
        entity_id = (f"{entity_key}_id", str(entity.id))
        entity_rows.add(entity_id)

        for j, entry in enumerate(entity.name):
            prefix = f"{entity_key}_name_{j}"
            name_rows.add(
                entity_id,
                (f"{prefix}_value", entry.detail.value),
                *_interval_bindings(prefix, entry.interval),
            )

        for j, entry in enumerate(entity.country):
            prefix = f"{entity_key}_country_{j}"
            country_rows.add(
                entity_id,
                (f"{prefix}_value", entry.detail.value),
                *_interval_bindings(prefix, entry.interval),
            )

        for j, entry in enumerate(entity.identifiers):
            prefix = f"{entity_key}_duration_{j}"
            interval = _interval_bindings(prefix, entry.interval)
            for k, identifier in enumerate(entry.detail):
                identifier_nodes.setdefault(identifier.key)
                identifier_links.add(
                    entity_id,
                    *_identifier_bindings(f"{prefix}_identifier_{k}", identifier),
                    *interval,
                )

        for j, entry in enumerate(entity.securities):
            prefix = f"{entity_key}_securities_{j}"
            interval = _interval_bindings(prefix, entry.interval)
            for k, security in enumerate(entry.detail):
                security_key = f"{prefix}_security_{k}"
                security_id = (f"{security_key}_id", str(security_id_factory()))
                security_rows.add(
                    security_id,
                    entity_id,
                    (f"{security_key}_name", security.name),
                    (f"{security_key}_primary", security.is_primary),
                    *interval,
                )
                for m, identifier in enumerate(security.identifiers):
                    identifier_nodes.setdefault(identifier.key)
                    security_identifier_links.add(
                        security_id,
                        *_identifier_bindings(f"{security_key}_identifier_{m}", identifier),
                    )

    batch = StatementBatch()
    if not entity_rows:
        return batch

    batch.add(_insert("entity", ("id",), entity_rows))
    if name_rows:
        batch.add(
            _insert("entity_name", ("entity_id", "value", "valid_from", "valid_until"), name_rows)
        )
    if country_rows:
        batch.add(
            _insert(
                "entity_country", ("entity_id", "value", "valid_from", "valid_until"), country_rows
            )
        )
    if identifier_nodes:
        batch.add(_merge_identifiers(list(identifier_nodes)))
    if identifier_links:
        batch.add(_link_entity_identifiers(identifier_links))
    if security_rows:
        batch.add(
            _insert(
                "security",
                ("id", "entity_id", "name", "is_primary", "valid_from", "valid_until"),
                security_rows,
            )
        )
    if security_identifier_links:
        batch.add(_link_security_identifiers(security_identifier_links))
    return batch


def _interval_bindings(
    prefix: str, interval: Interval | None
) -> tuple[tuple[str, ParamValue], tuple[str, ParamValue]]:
    if interval is None:
        raise ValueError(f"{prefix}: timeline entries written to the store need an interval")
    return (
        (f"{prefix}_from", format_timestamp(interval.start)),
        (f"{prefix}_until", format_timestamp(interval.end)),
    )


def _identifier_bindings(
    prefix: str, identifier: Identifier
) -> tuple[tuple[str, ParamValue], tuple[str, ParamValue]]:
    identifier_type, value = identifier.key
    return ((f"{prefix}_type", identifier_type), (f"{prefix}_value", value))


def _insert(table: str, columns: tuple[str, ...], rows: _Rows) -> Statement:
    rows.builder.write(f"""
        INSERT INTO {table} ({", ".join(columns)})
        VALUES
            {rows.joined()}
    """)
    return rows.builder.build()


def _merge_identifiers(keys: list[tuple[str, str]]) -> Statement:
    qb = QueryBuilder()
    values = [
        qb.values_row((f"identifier_{k}_type", kind), (f"identifier_{k}_value", value))
        for k, (kind, value) in enumerate(keys)
    ]
    qb.write(f"""
        INSERT INTO identifier (type, value)
        VALUES
            {_ROW_SEPARATOR.join(values)}
        ON CONFLICT (type, value) DO NOTHING
    """)
    return qb.build()


def _link_entity_identifiers(rows: _Rows) -> Statement:
    rows.builder.write(f"""
        WITH link (entity_id, identifier_type, identifier_value, valid_from, valid_until) AS (
            VALUES
            {rows.joined()}
        )
        INSERT INTO entity_identifier (entity_id, identifier_id, valid_from, valid_until)
        SELECT link.entity_id, identifier.id, link.valid_from, link.valid_until
        FROM link
        JOIN identifier
            ON identifier.type = link.identifier_type
            AND identifier.value = link.identifier_value
    """)
    return rows.builder.build()


def _link_security_identifiers(rows: _Rows) -> Statement:
    rows.builder.write(f"""
        WITH link (security_id, identifier_type, identifier_value) AS (
            VALUES
            {rows.joined()}
        )
        INSERT INTO security_identifier (security_id, identifier_id)
        SELECT link.security_id, identifier.id
        FROM link
        JOIN identifier
            ON identifier.type = link.identifier_type
            AND identifier.value = link.identifier_value
    """)
    return rows.builder.build()


__all__ = ["SecurityIdFactory", "encode_entities"]
