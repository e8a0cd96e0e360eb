from collections.abc import Mapping
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.date_filter import DateFilter
from app.core.pagination import Page, PageRequest, SortDirection
from app.domain.enums import ProjectScope, WorkItemDomain
from app.infra.db.models import (
    Contact,
    Estimate,
    EstimateGroup,
    EstimateLine,
    Project,
    ProjectParticipant,
    Quote,
    User,
    UserAuthentication,
    WorkItem,
)

ModelT = TypeVar("ModelT")


async def _paginate(
    session: AsyncSession,
    stmt: Select[tuple[ModelT]],
    page_request: PageRequest,
    sort_columns: Mapping[str, Any],
) -> Page[ModelT]:
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = int((await session.execute(count_stmt)).scalar_one() or 0)

    order_by = []
    for order in page_request.orders:
        column = sort_columns[order.field]
        order_by.append(column.desc() if order.direction == SortDirection.DESC else column.asc())

    paged = stmt.order_by(*order_by).offset(page_request.offset).limit(page_request.size)
    result = await session.execute(paged)
    return Page(
        items=list(result.scalars().all()),
        total=total,
        page=page_request.page,
        size=page_request.size,
    )


def _apply_date_filter(stmt: Select, model: Any, date_filter: DateFilter | None) -> Select:
    if date_filter is None or not date_filter.has_filters:
        return stmt
    if date_filter.created_after is not None:
        stmt = stmt.where(model.created_at >= date_filter.created_after)
    if date_filter.created_before is not None:
        stmt = stmt.where(model.created_at <= date_filter.created_before)
    if date_filter.updated_after is not None:
        stmt = stmt.where(model.last_updated_at >= date_filter.updated_after)
    if date_filter.updated_before is not None:
        stmt = stmt.where(model.last_updated_at <= date_filter.updated_before)
    return stmt


class ContactRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, contact_id: UUID) -> Contact | None:
        return await self.session.get(Contact, contact_id)

    async def get_by_email(self, email: str) -> Contact | None:
        stmt: Select[tuple[Contact]] = select(Contact).where(
            func.lower(Contact.email) == email.strip().lower()
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        return await self.get_by_email(email) is not None

    async def create(self, contact: Contact) -> Contact:
        self.session.add(contact)
        await self.session.flush()
        return contact


class UserRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        stmt: Select[tuple[User]] = select(User).where(User.username == username)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        stmt: Select[tuple[User]] = select(User).where(
            func.lower(User.email) == email.strip().lower()
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists_by_id(self, user_id: UUID) -> bool:
        return await self.get_by_id(user_id) is not None

    async def exists_by_username(self, username: str) -> bool:
        return await self.get_by_username(username) is not None

    async def exists_by_email(self, email: str) -> bool:
        return await self.get_by_email(email) is not None

    async def create(self, username: str, email: str, contact: Contact, registered: bool) -> User:
        user = User(username=username, email=email, contact=contact, registered=registered)
        self.session.add(user)
        await self.session.flush()
        return user


class UserAuthenticationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_username(self, username: str) -> UserAuthentication | None:
        stmt: Select[tuple[UserAuthentication]] = select(UserAuthentication).where(
            UserAuthentication.username == username
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists_by_username(self, username: str) -> bool:
        return await self.get_by_username(username) is not None

    async def list_all(self) -> list[UserAuthentication]:
        stmt: Select[tuple[UserAuthentication]] = select(UserAuthentication).order_by(
            UserAuthentication.created_at.asc(), UserAuthentication.username.asc()
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, user_auth: UserAuthentication) -> UserAuthentication:
        self.session.add(user_auth)
        await self.session.flush()
        return user_auth


class ProjectRepository:
    sort_columns = {
        "last_updated_at": Project.last_updated_at,
        "created_at": Project.created_at,
    }

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, project_id: UUID) -> Project | None:
        return await self.session.get(Project, project_id)

    async def exists_by_id(self, project_id: UUID) -> bool:
        return await self.get_by_id(project_id) is not None

    async def create(self, project: Project) -> Project:
        self.session.add(project)
        await self.session.flush()
        return project

    async def list_for_user(
        self,
        user_id: UUID,
        scope: ProjectScope,
        page_request: PageRequest,
        date_filter: DateFilter | None = None,
    ) -> Page[Project]:
        stmt: Select[tuple[Project]] = select(Project)
        if scope == ProjectScope.BUILDER:
            stmt = stmt.where(Project.builder_id == user_id)
        elif scope == ProjectScope.OWNER:
            stmt = stmt.where(Project.owner_id == user_id)
        else:
            stmt = stmt.where(or_(Project.builder_id == user_id, Project.owner_id == user_id))
        stmt = _apply_date_filter(stmt, Project, date_filter)
        return await _paginate(self.session, stmt, page_request, self.sort_columns)


class ProjectParticipantRepository:
    sort_columns = {
        "contact_id": ProjectParticipant.contact_id,
        "role": ProjectParticipant.role,
    }

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, participant_id: UUID) -> ProjectParticipant | None:
        return await self.session.get(ProjectParticipant, participant_id)

    async def list_by_project(
        self, project_id: UUID, page_request: PageRequest
    ) -> Page[ProjectParticipant]:
        stmt: Select[tuple[ProjectParticipant]] = select(ProjectParticipant).where(
            ProjectParticipant.project_id == project_id
        )
        return await _paginate(self.session, stmt, page_request, self.sort_columns)

    async def create(self, participant: ProjectParticipant) -> ProjectParticipant:
        self.session.add(participant)
        await self.session.flush()
        return participant

    async def delete(self, participant: ProjectParticipant) -> None:
        await self.session.delete(participant)
        await self.session.flush()


class WorkItemRepository:
    sort_columns = {
        "code": WorkItem.code,
        "name": WorkItem.name,
        "last_updated_at": WorkItem.last_updated_at,
    }

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, work_item_id: UUID) -> WorkItem | None:
        return await self.session.get(WorkItem, work_item_id)

    async def list_by_user(self, user_id: UUID, page_request: PageRequest) -> Page[WorkItem]:
        stmt: Select[tuple[WorkItem]] = select(WorkItem).where(WorkItem.user_id == user_id)
        return await _paginate(self.session, stmt, page_request, self.sort_columns)

    async def list_by_domain(
        self,
        domain: WorkItemDomain,
        page_request: PageRequest,
        user_id: UUID | None = None,
    ) -> Page[WorkItem]:
        stmt: Select[tuple[WorkItem]] = select(WorkItem).where(WorkItem.domain == domain)
        if user_id is not None:
            stmt = stmt.where(WorkItem.user_id == user_id)
        return await _paginate(self.session, stmt, page_request, self.sort_columns)

    async def create(self, work_item: WorkItem) -> WorkItem:
        self.session.add(work_item)
        await self.session.flush()
        return work_item


class EstimateRepository:
    sort_columns = {
        "last_updated_at": Estimate.last_updated_at,
        "created_at": Estimate.created_at,
    }

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, estimate_id: UUID) -> Estimate | None:
        return await self.session.get(Estimate, estimate_id)

    async def get_group(self, group_id: UUID) -> EstimateGroup | None:
        return await self.session.get(EstimateGroup, group_id)

    async def list_by_project(
        self,
        project_id: UUID,
        page_request: PageRequest,
        date_filter: DateFilter | None = None,
    ) -> Page[Estimate]:
        stmt: Select[tuple[Estimate]] = select(Estimate).where(Estimate.project_id == project_id)
        stmt = _apply_date_filter(stmt, Estimate, date_filter)
        return await _paginate(self.session, stmt, page_request, self.sort_columns)

    async def count_by_project(self, project_id: UUID) -> int:
        stmt: Select[tuple[int]] = select(func.count(Estimate.id)).where(
            Estimate.project_id == project_id
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one() or 0)

    async def create(self, estimate: Estimate) -> Estimate:
        self.session.add(estimate)
        await self.session.flush()
        return estimate

    async def add_group(self, estimate: Estimate, group: EstimateGroup) -> EstimateGroup:
        estimate.groups.append(group)
        estimate.touch()
        await self.session.flush()
        return group

    async def add_line(self, group: EstimateGroup, line: EstimateLine) -> EstimateLine:
        group.lines.append(line)
        await self.session.flush()
        return line

    async def touch(self, estimate: Estimate) -> None:
        estimate.touch()
        await self.session.flush()

    async def delete(self, estimate: Estimate) -> None:
        await self.session.delete(estimate)
        await self.session.flush()


class QuoteRepository:
    sort_columns = {
        "created_at": Quote.created_at,
        "last_updated_at": Quote.last_updated_at,
        "unit_price": Quote.unit_price,
    }

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, quote_id: UUID) -> Quote | None:
        return await self.session.get(Quote, quote_id)

    async def list_by_creator(self, user_id: UUID, page_request: PageRequest) -> Page[Quote]:
        stmt: Select[tuple[Quote]] = select(Quote).where(Quote.created_by_id == user_id)
        return await _paginate(self.session, stmt, page_request, self.sort_columns)

    async def list_by_supplier(self, user_id: UUID, page_request: PageRequest) -> Page[Quote]:
        stmt: Select[tuple[Quote]] = select(Quote).where(Quote.supplier_id == user_id)
        return await _paginate(self.session, stmt, page_request, self.sort_columns)

    async def count_by_creator(self, user_id: UUID) -> int:
        stmt: Select[tuple[int]] = select(func.count(Quote.id)).where(
            Quote.created_by_id == user_id
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one() or 0)

    async def count_by_supplier(self, user_id: UUID) -> int:
        stmt: Select[tuple[int]] = select(func.count(Quote.id)).where(
            Quote.supplier_id == user_id
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one() or 0)

    async def create(self, quote: Quote) -> Quote:
        self.session.add(quote)
        await self.session.flush()
        return quote
