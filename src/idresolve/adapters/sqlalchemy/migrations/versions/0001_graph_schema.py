"""Create the resolution graph tables.

Revision ID: 0001_graph_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_graph_schema"
down_revision = None
branch_labels = None
depends_on = None

_UUID = sa.String(36)
_TIMESTAMP = sa.String(27)


def _validity() -> tuple[sa.Column[str], sa.Column[str]]:
    return (
        sa.Column("valid_from", _TIMESTAMP, nullable=False),
        sa.Column("valid_until", _TIMESTAMP, nullable=True),
    )


def _valued_link(table: str) -> None:
    op.create_table(
        table,
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column(
            "entity_id",
            _UUID,
            sa.ForeignKey("entity.id", name=f"fk_{table}_entity_id_entity", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("value", sa.String, nullable=False),
        *_validity(),
        sa.PrimaryKeyConstraint("id", name=f"pk_{table}"),
    )
    op.create_index(f"ix_{table}_entity", table, ["entity_id"])


def upgrade() -> None:
    op.create_table(
        "entity",
        sa.Column("id", _UUID, nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_entity"),
    )
    _valued_link("entity_name")
    _valued_link("entity_country")

    op.create_table(
        "identifier",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("type", sa.String, nullable=False),
        sa.Column("value", sa.String, nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_identifier"),
        sa.UniqueConstraint("type", "value", name="uq_identifier_type_value"),
    )

    op.create_table(
        "entity_identifier",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column(
            "entity_id",
            _UUID,
            sa.ForeignKey(
                "entity.id", name="fk_entity_identifier_entity_id_entity", ondelete="CASCADE"
            ),
            nullable=False,
        ),
        sa.Column(
            "identifier_id",
            sa.Integer,
            sa.ForeignKey(
                "identifier.id",
                name="fk_entity_identifier_identifier_id_identifier",
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        *_validity(),
        sa.PrimaryKeyConstraint("id", name="pk_entity_identifier"),
    )
    op.create_index("ix_entity_identifier_identifier", "entity_identifier", ["identifier_id"])
    op.create_index("ix_entity_identifier_entity", "entity_identifier", ["entity_id"])
    op.create_index(
        "ix_entity_identifier_duration", "entity_identifier", ["valid_from", "valid_until"]
    )

    op.create_table(
        "security",
        sa.Column("id", _UUID, nullable=False),
        sa.Column(
            "entity_id",
            _UUID,
            sa.ForeignKey("entity.id", name="fk_security_entity_id_entity", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("is_primary", sa.Boolean, nullable=False),
        *_validity(),
        sa.PrimaryKeyConstraint("id", name="pk_security"),
    )
    op.create_index("ix_security_entity", "security", ["entity_id"])

    op.create_table(
        "security_identifier",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column(
            "security_id",
            _UUID,
            sa.ForeignKey(
                "security.id", name="fk_security_identifier_security_id_security", ondelete="CASCADE"
            ),
            nullable=False,
        ),
        sa.Column(
            "identifier_id",
            sa.Integer,
            sa.ForeignKey(
                "identifier.id",
                name="fk_security_identifier_identifier_id_identifier",
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_security_identifier"),
    )
    op.create_index(
        "ix_security_identifier_identifier", "security_identifier", ["identifier_id"]
    )
    op.create_index("ix_security_identifier_security", "security_identifier", ["security_id"])


def downgrade() -> None:
    op.drop_table("security_identifier")
    op.drop_table("security")
    op.drop_table("entity_identifier")
    op.drop_table("identifier")
    op.drop_table("entity_country")
    op.drop_table("entity_name")
    op.drop_table("entity")
