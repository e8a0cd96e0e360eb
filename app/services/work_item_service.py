from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.core.pagination import Page, PageRequest
from app.domain.enums import WorkItemDomain
from app.infra.db.models import WorkItem
from app.infra.db.repositories import UserRepository, WorkItemRepository
from app.schemas.estimate import CreateWorkItemRequest
from app.services.authorization import UserPrincipal, ensure_self_or_admin
from app.services.errors import (
    AccessDeniedError,
    InvalidWorkItemDomainError,
    UserNotFoundError,
    WorkItemNotFoundError,
)

logger = get_logger(__name__)


def parse_work_item_domain(raw: str) -> WorkItemDomain:
    try:
        return WorkItemDomain(raw.strip().upper())
    except ValueError as exc:
        raise InvalidWorkItemDomainError(raw) from exc


class WorkItemService:
    def __init__(
        self,
        session: AsyncSession,
        work_items: WorkItemRepository | None = None,
        users: UserRepository | None = None,
    ) -> None:
        self.session = session
        self.work_items = work_items or WorkItemRepository(session)
        self.users = users or UserRepository(session)

    async def create_work_item(
        self, principal: UserPrincipal, request: CreateWorkItemRequest
    ) -> WorkItem:
        ensure_self_or_admin(principal, request.user_id)
        if not await self.users.exists_by_id(request.user_id):
            raise UserNotFoundError(request.user_id)

        work_item = await self.work_items.create(
            WorkItem(
                code=request.code.strip(),
                name=request.name.strip(),
                description=request.description,
                optional=request.optional,
                user_id=request.user_id,
                default_group_name=request.default_group_name.strip(),
                domain=request.domain,
            )
        )
        await self.session.commit()
        await self.session.refresh(work_item)

        logger.info("work_item_created", work_item_id=str(work_item.id), code=work_item.code)
        return work_item

    async def get_work_item(self, principal: UserPrincipal, work_item_id: UUID) -> WorkItem:
        work_item = await self.work_items.get_by_id(work_item_id)
        if work_item is None:
            raise WorkItemNotFoundError(work_item_id)
        if work_item.domain == WorkItemDomain.PRIVATE:
            ensure_self_or_admin(principal, work_item.user_id)
        return work_item

    async def list_for_user(
        self, principal: UserPrincipal, user_id: UUID, page_request: PageRequest
    ) -> Page[WorkItem]:
        ensure_self_or_admin(principal, user_id)
        return await self.work_items.list_by_user(user_id, page_request)

    async def list_by_domain(
        self, principal: UserPrincipal, raw_domain: str, page_request: PageRequest
    ) -> Page[WorkItem]:
        """List work items of one domain; private listings only show the caller's items."""
        domain = parse_work_item_domain(raw_domain)
        if domain == WorkItemDomain.PRIVATE and not principal.is_admin:
            if principal.user_id is None:
                raise AccessDeniedError("You can only access your own resources")
            return await self.work_items.list_by_domain(domain, page_request, principal.user_id)
        return await self.work_items.list_by_domain(domain, page_request)
