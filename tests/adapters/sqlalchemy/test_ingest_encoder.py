from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import pytest

from idresolve.adapters.sqlalchemy.ingest import encode_entities
from idresolve.domain.model import (
    DetailDuration,
    Entity,
    EntityName,
    Identifier,
    IdentifierType,
    Interval,
    Security,
    new_id,
)
from tests.helpers.entities import make_entity, utc

if TYPE_CHECKING:
    from collections.abc import Callable

ISIN = Identifier(IdentifierType.ISIN, "US0378331005")
RESOLVE_ID = Identifier(IdentifierType.RESOLVE_ID, "R1")


def _fixed_ids() -> Callable[[], UUID]:
    counter = iter(range(1, 1000))
    return lambda: UUID(int=next(counter))


def test_no_entities_means_no_statements() -> None:
    assert len(encode_entities([])) == 0


def test_statement_order_follows_dependencies() -> None:
    entity = make_entity(
        identifiers=[RESOLVE_ID],
        country="US",
        securities=[Security("Common", (ISIN,), is_primary=True)],
    )

    batch = encode_entities([entity], security_id_factory=_fixed_ids())

    targets = [statement.template.split("INSERT INTO ")[1].split()[0] for statement in batch]
    assert targets == [
        "entity",
        "entity_name",
        "entity_country",
        "identifier",
        "entity_identifier",
        "security",
        "security_identifier",
    ]


def test_parameter_names_are_derived_from_positions() -> None:
    first = make_entity(identifiers=[RESOLVE_ID, ISIN])
    second = make_entity(name="Other")
    second.add_identifiers((ISIN,), Interval(utc(2019), utc(2020)))

    batch = encode_entities([first, second])
    params = batch.params

    assert params["entity_0_id"] == str(first.id)
    assert params["entity_1_id"] == str(second.id)
    assert params["entity_0_name_0_value"] == "Acme Holdings"
    assert params["entity_0_name_0_from"] == "2020-01-01T00:00:00.000000Z"
    assert params["entity_0_name_0_until"] is None
    assert params["entity_0_duration_0_identifier_1_type"] == "isin"
    assert params["entity_0_duration_0_identifier_1_value"] == "US0378331005"
    assert params["entity_1_duration_0_until"] == "2020-01-01T00:00:00.000000Z"


def test_identifier_nodes_are_merged_once_per_batch() -> None:
    entities = [make_entity(identifiers=[ISIN]), make_entity(identifiers=[ISIN, RESOLVE_ID])]

    batch = encode_entities(entities)
    merge = next(
        item for item in batch if item.template.lstrip().startswith("INSERT INTO identifier")
    )

    assert "ON CONFLICT (type, value) DO NOTHING" in merge.template
    assert sorted(merge.params.items()) == [
        ("identifier_0_type", "isin"),
        ("identifier_0_value", "US0378331005"),
        ("identifier_1_type", "resolve_id"),
        ("identifier_1_value", "R1"),
    ]


def test_security_rows_carry_generated_ids_and_link_identifiers() -> None:
    entity = make_entity(
        securities=[
            Security("Common", (ISIN,), is_primary=True),
            Security("Preferred", ()),
        ]
    )

    batch = encode_entities([entity], security_id_factory=_fixed_ids())
    params = batch.params

    assert params["entity_0_securities_0_security_0_id"] == str(UUID(int=1))
    assert params["entity_0_securities_0_security_1_id"] == str(UUID(int=2))
    assert params["entity_0_securities_0_security_0_primary"] is True
    assert params["entity_0_securities_0_security_1_primary"] is False
    assert params["entity_0_securities_0_security_0_identifier_0_value"] == "US0378331005"
    assert "entity_0_securities_0_security_1_identifier_0_value" not in params


def test_untimed_entries_cannot_be_written() -> None:
    entity = Entity(id=new_id())
    entity.name.append(DetailDuration(EntityName("A")))

    with pytest.raises(ValueError, match="need an interval"):
        encode_entities([entity])


def test_debug_rendering_inlines_values() -> None:
    batch = encode_entities([make_entity(identifiers=[RESOLVE_ID])])

    rendered = batch.render_debug()

    assert "'R1'" in rendered
    assert ":entity_0_id" not in rendered
