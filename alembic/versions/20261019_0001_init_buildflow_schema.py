"""init buildflow schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from __future__ import annotations

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ADDRESS_COLUMNS = (
    ("unit_number", 20),
    ("street_number", 20),
    ("street_name", 200),
    ("city", 100),
    ("state_or_province", 100),
    ("postal_or_zip_code", 20),
    ("country", 100),
)


def _address_columns() -> list[sa.Column]:
    return [sa.Column(name, sa.String(length=length), nullable=True) for name, length in ADDRESS_COLUMNS]


def _timestamp_columns() -> list[sa.Column]:
    return [
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
    ]


def upgrade() -> None:
    user_role = sa.Enum("VIEWER", "USER", "PREMIUM_USER", "ADMIN", name="user_role")
    project_role = sa.Enum("BUILDER", "OWNER", name="project_role")
    work_item_domain = sa.Enum("PUBLIC", "PRIVATE", name="work_item_domain")
    estimate_line_strategy = sa.Enum(
        "AVERAGE", "LATEST", "LOWEST", name="estimate_line_strategy"
    )

    bind = op.get_bind()
    user_role.create(bind, checkfirst=True)
    project_role.create(bind, checkfirst=True)
    work_item_domain.create(bind, checkfirst=True)
    estimate_line_strategy.create(bind, checkfirst=True)

    op.create_table(
        "contacts",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("labels", sa.JSON(), nullable=False),
        *_address_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uk_contacts_email"),
    )

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=False),
        sa.Column("registered", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("contact_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], name="fk_users_contact"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username", name="uk_users_username"),
        sa.UniqueConstraint("email", name="uk_users_email"),
        sa.UniqueConstraint("contact_id", name="uk_users_contact_id"),
    )

    op.create_table(
        "user_authentication",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("VIEWER", "USER", "PREMIUM_USER", "ADMIN", name="user_role", create_type=False),
            nullable=False,
            server_default=sa.text("'USER'"),
        ),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username", name="uk_user_auth_username"),
    )

    op.create_table(
        "project_locations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_address_columns(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("builder_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("location_id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(
            ["builder_id"], ["users.id"], name="fk_projects_builder", ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["owner_id"], ["users.id"], name="fk_projects_owner", ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["location_id"], ["project_locations.id"], name="fk_projects_location"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("location_id", name="uk_projects_location_id"),
    )
    op.create_index("ix_projects_builder_id", "projects", ["builder_id"], unique=False)
    op.create_index("ix_projects_owner_id", "projects", ["owner_id"], unique=False)

    op.create_table(
        "project_participants",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "role",
            sa.Enum("BUILDER", "OWNER", name="project_role", create_type=False),
            nullable=False,
        ),
        sa.Column("contact_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["project_id"],
            ["projects.id"],
            name="fk_project_participant_project",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["contact_id"], ["contacts.id"], name="fk_project_participant_contact"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_project_participants_project_id",
        "project_participants",
        ["project_id"],
        unique=False,
    )

    op.create_table(
        "work_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=250), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=True),
        sa.Column("optional", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "default_group_name",
            sa.String(length=100),
            nullable=False,
            server_default=sa.text("'Unassigned'"),
        ),
        sa.Column(
            "domain",
            sa.Enum("PUBLIC", "PRIVATE", name="work_item_domain", create_type=False),
            nullable=False,
            server_default=sa.text("'PUBLIC'"),
        ),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_work_items_user"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_work_items_user_id", "work_items", ["user_id"], unique=False)

    op.create_table(
        "estimates",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "overall_multiplier",
            sa.Float(),
            nullable=False,
            server_default=sa.text("1.0"),
        ),
        *_timestamp_columns(),
        sa.CheckConstraint("overall_multiplier >= 0", name="ck_estimates_overall_multiplier"),
        sa.ForeignKeyConstraint(
            ["project_id"], ["projects.id"], name="fk_estimates_project", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_estimates_project_id", "estimates", ["project_id"], unique=False)

    op.create_table(
        "estimate_groups",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("estimate_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.ForeignKeyConstraint(
            ["estimate_id"],
            ["estimates.id"],
            name="fk_estimate_groups_estimate",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_estimate_groups_estimate_id", "estimate_groups", ["estimate_id"], unique=False
    )

    op.create_table(
        "estimate_lines",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("estimate_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("group_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("work_item_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column(
            "estimate_strategy",
            sa.Enum(
                "AVERAGE",
                "LATEST",
                "LOWEST",
                name="estimate_line_strategy",
                create_type=False,
            ),
            nullable=False,
        ),
        sa.Column("multiplier", sa.Float(), nullable=False, server_default=sa.text("1.0")),
        sa.Column("computed_cost", sa.Numeric(precision=17, scale=2), nullable=True),
        *_timestamp_columns(),
        sa.CheckConstraint("quantity >= 0", name="ck_estimate_lines_quantity"),
        sa.CheckConstraint("multiplier >= 0", name="ck_estimate_lines_multiplier"),
        sa.CheckConstraint(
            "computed_cost IS NULL OR computed_cost >= 0",
            name="ck_estimate_lines_computed_cost",
        ),
        sa.ForeignKeyConstraint(
            ["estimate_id"],
            ["estimates.id"],
            name="fk_estimate_lines_estimate",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["estimate_groups.id"],
            name="fk_estimate_lines_group",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["work_item_id"], ["work_items.id"], name="fk_estimate_lines_work_item"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_estimate_lines_estimate_id", "estimate_lines", ["estimate_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_estimate_lines_estimate_id", table_name="estimate_lines")
    op.drop_table("estimate_lines")
    op.drop_index("ix_estimate_groups_estimate_id", table_name="estimate_groups")
    op.drop_table("estimate_groups")
    op.drop_index("ix_estimates_project_id", table_name="estimates")
    op.drop_table("estimates")
    op.drop_index("ix_work_items_user_id", table_name="work_items")
    op.drop_table("work_items")
    op.drop_index("ix_project_participants_project_id", table_name="project_participants")
    op.drop_table("project_participants")
    op.drop_index("ix_projects_owner_id", table_name="projects")
    op.drop_index("ix_projects_builder_id", table_name="projects")
    op.drop_table("projects")
    op.drop_table("project_locations")
    op.drop_table("user_authentication")
    op.drop_table("users")
    op.drop_table("contacts")

    bind = op.get_bind()
    sa.Enum(name="estimate_line_strategy").drop(bind, checkfirst=True)
    sa.Enum(name="work_item_domain").drop(bind, checkfirst=True)
    sa.Enum(name="project_role").drop(bind, checkfirst=True)
    sa.Enum(name="user_role").drop(bind, checkfirst=True)
