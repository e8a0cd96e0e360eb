from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from app.domain.enums import (
    EstimateLineStrategy,
    ProjectRole,
    QuoteDomain,
    QuoteUnit,
    Role,
    WorkItemDomain,
)

UNASSIGNED_GROUP_NAME = "Unassigned"


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    return datetime.now(UTC)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    last_updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    def touch(self) -> None:
        self.last_updated_at = utcnow()


class AddressMixin:
    unit_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    street_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    street_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state_or_province: Mapped[str | None] = mapped_column(String(100), nullable=True)
    postal_or_zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)


class Contact(Base, AddressMixin):
    __tablename__ = "contacts"
    __table_args__ = (UniqueConstraint("email", name="uk_contacts_email"),)

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    labels: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("username", name="uk_users_username"),
        UniqueConstraint("email", name="uk_users_email"),
        UniqueConstraint("contact_id", name="uk_users_contact_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False)
    registered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    contact_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("contacts.id", name="fk_users_contact"), nullable=False
    )

    contact: Mapped[Contact] = relationship(lazy="selectin")


class UserAuthentication(Base):
    __tablename__ = "user_authentication"
    __table_args__ = (UniqueConstraint("username", name="uk_user_auth_username"),)

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role, name="user_role"), nullable=False, default=Role.USER)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ProjectLocation(Base, AddressMixin):
    __tablename__ = "project_locations"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)


class Project(Base, TimestampMixin):
    __tablename__ = "projects"
    __table_args__ = (UniqueConstraint("location_id", name="uk_projects_location_id"),)

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    builder_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", name="fk_projects_builder", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    owner_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", name="fk_projects_owner", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    location_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("project_locations.id", name="fk_projects_location"),
        nullable=False,
    )

    location: Mapped[ProjectLocation] = relationship(
        lazy="selectin", cascade="all, delete-orphan", single_parent=True
    )
    participants: Mapped[list["ProjectParticipant"]] = relationship(
        back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )
    estimates: Mapped[list["Estimate"]] = relationship(
        back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )

    def is_member(self, user_id: UUID) -> bool:
        return user_id in (self.builder_id, self.owner_id)


class ProjectParticipant(Base):
    __tablename__ = "project_participants"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", name="fk_project_participant_project", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[ProjectRole] = mapped_column(Enum(ProjectRole, name="project_role"), nullable=False)
    contact_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("contacts.id", name="fk_project_participant_contact"),
        nullable=False,
    )

    project: Mapped[Project] = relationship(back_populates="participants")
    contact: Mapped[Contact] = relationship(lazy="selectin")


class WorkItem(Base, TimestampMixin):
    __tablename__ = "work_items"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(250), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", name="fk_work_items_user"),
        nullable=False,
        index=True,
    )
    default_group_name: Mapped[str] = mapped_column(
        String(100), nullable=False, default=UNASSIGNED_GROUP_NAME
    )
    domain: Mapped[WorkItemDomain] = mapped_column(
        Enum(WorkItemDomain, name="work_item_domain"),
        nullable=False,
        default=WorkItemDomain.PUBLIC,
    )


class Estimate(Base, TimestampMixin):
    __tablename__ = "estimates"
    __table_args__ = (
        CheckConstraint("overall_multiplier >= 0", name="ck_estimates_overall_multiplier"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", name="fk_estimates_project", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    overall_multiplier: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)

    project: Mapped[Project] = relationship(back_populates="estimates")
    groups: Mapped[list["EstimateGroup"]] = relationship(
        back_populates="estimate",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="EstimateGroup.name",
    )


class EstimateGroup(Base):
    __tablename__ = "estimate_groups"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    estimate_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("estimates.id", name="fk_estimate_groups_estimate", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    estimate: Mapped[Estimate] = relationship(back_populates="groups")
    lines: Mapped[list["EstimateLine"]] = relationship(
        back_populates="group",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class EstimateLine(Base, TimestampMixin):
    __tablename__ = "estimate_lines"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_estimate_lines_quantity"),
        CheckConstraint("multiplier >= 0", name="ck_estimate_lines_multiplier"),
        CheckConstraint(
            "computed_cost IS NULL OR computed_cost >= 0",
            name="ck_estimate_lines_computed_cost",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    estimate_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("estimates.id", name="fk_estimate_lines_estimate", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    group_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("estimate_groups.id", name="fk_estimate_lines_group", ondelete="CASCADE"),
        nullable=True,
    )
    work_item_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("work_items.id", name="fk_estimate_lines_work_item"),
        nullable=False,
    )
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    estimate_strategy: Mapped[EstimateLineStrategy] = mapped_column(
        Enum(EstimateLineStrategy, name="estimate_line_strategy"), nullable=False
    )
    multiplier: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    computed_cost: Mapped[Decimal | None] = mapped_column(Numeric(17, 2), nullable=True)

    group: Mapped[EstimateGroup | None] = relationship(back_populates="lines")


class QuoteLocation(Base, AddressMixin):
    __tablename__ = "quote_locations"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)


class Quote(Base, TimestampMixin):
    __tablename__ = "quotes"
    __table_args__ = (
        UniqueConstraint("location_id", name="uk_quotes_location_id"),
        CheckConstraint("unit_price >= 0", name="ck_quotes_unit_price"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    work_item_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("work_items.id", name="fk_quotes_work_item"),
        nullable=False,
    )
    created_by_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", name="fk_quotes_created_by"),
        nullable=False,
        index=True,
    )
    supplier_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", name="fk_quotes_supplier"),
        nullable=False,
        index=True,
    )
    unit: Mapped[QuoteUnit] = mapped_column(Enum(QuoteUnit, name="quote_unit"), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(17, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    domain: Mapped[QuoteDomain] = mapped_column(
        Enum(QuoteDomain, name="quote_domain"), nullable=False, default=QuoteDomain.PUBLIC
    )
    location_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("quote_locations.id", name="fk_quotes_location"),
        nullable=False,
    )
    valid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    location: Mapped[QuoteLocation] = relationship(
        lazy="selectin", cascade="all, delete-orphan", single_parent=True
    )
