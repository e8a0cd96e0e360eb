"""add quotes

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:01.000000

"""

from __future__ import annotations

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0002"
down_revision: str | Sequence[str] | None = "20261019_0001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

QUOTE_UNITS = (
    "SQUARE_METER",
    "SQUARE_FOOT",
    "CUBIC_METER",
    "CUBIC_FOOT",
    "METER",
    "FOOT",
    "EACH",
    "KILOGRAM",
    "TON",
    "LITER",
    "MILLILITER",
    "HOUR",
    "DAY",
)

ADDRESS_COLUMNS = (
    ("unit_number", 20),
    ("street_number", 20),
    ("street_name", 200),
    ("city", 100),
    ("state_or_province", 100),
    ("postal_or_zip_code", 20),
    ("country", 100),
)


def upgrade() -> None:
    bind = op.get_bind()
    sa.Enum(*QUOTE_UNITS, name="quote_unit").create(bind, checkfirst=True)
    sa.Enum("PUBLIC", "PRIVATE", name="quote_domain").create(bind, checkfirst=True)

    op.create_table(
        "quote_locations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *[
            sa.Column(name, sa.String(length=length), nullable=True)
            for name, length in ADDRESS_COLUMNS
        ],
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "quotes",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("work_item_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("supplier_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "unit",
            sa.Enum(*QUOTE_UNITS, name="quote_unit", create_type=False),
            nullable=False,
        ),
        sa.Column("unit_price", sa.Numeric(precision=17, scale=2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column(
            "domain",
            sa.Enum("PUBLIC", "PRIVATE", name="quote_domain", create_type=False),
            nullable=False,
            server_default=sa.text("'PUBLIC'"),
        ),
        sa.Column("location_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("valid", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "last_updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint("unit_price >= 0", name="ck_quotes_unit_price"),
        sa.ForeignKeyConstraint(["work_item_id"], ["work_items.id"], name="fk_quotes_work_item"),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], name="fk_quotes_created_by"),
        sa.ForeignKeyConstraint(["supplier_id"], ["users.id"], name="fk_quotes_supplier"),
        sa.ForeignKeyConstraint(
            ["location_id"], ["quote_locations.id"], name="fk_quotes_location"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("location_id", name="uk_quotes_location_id"),
    )
    op.create_index("ix_quotes_created_by_id", "quotes", ["created_by_id"], unique=False)
    op.create_index("ix_quotes_supplier_id", "quotes", ["supplier_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_quotes_supplier_id", table_name="quotes")
    op.drop_index("ix_quotes_created_by_id", table_name="quotes")
    op.drop_table("quotes")
    op.drop_table("quote_locations")

    bind = op.get_bind()
    sa.Enum(name="quote_domain").drop(bind, checkfirst=True)
    sa.Enum(name="quote_unit").drop(bind, checkfirst=True)
