from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.core.pagination import Page, PageRequest
from app.infra.db.models import Quote, QuoteLocation
from app.infra.db.repositories import QuoteRepository, UserRepository, WorkItemRepository
from app.schemas.quote import CreateQuoteRequest
from app.services.authorization import UserPrincipal, ensure_self_or_admin
from app.services.errors import (
    AccessDeniedError,
    MissingQuoteFilterError,
    UserNotFoundError,
    WorkItemNotFoundError,
)

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class QuoteCounts:
    created: int
    supplied: int


class QuoteService:
    def __init__(
        self,
        session: AsyncSession,
        quotes: QuoteRepository | None = None,
        users: UserRepository | None = None,
        work_items: WorkItemRepository | None = None,
    ) -> None:
        self.session = session
        self.quotes = quotes or QuoteRepository(session)
        self.users = users or UserRepository(session)
        self.work_items = work_items or WorkItemRepository(session)

    async def create_quote(self, principal: UserPrincipal, request: CreateQuoteRequest) -> Quote:
        """Record a supplier's price for a work item on behalf of the caller."""
        if principal.user_id is None:
            raise AccessDeniedError("Quotes must be created by a user with a profile")
        if await self.work_items.get_by_id(request.work_item_id) is None:
            raise WorkItemNotFoundError(request.work_item_id)
        if not await self.users.exists_by_id(request.supplier_id):
            raise UserNotFoundError(request.supplier_id)

        quote = await self.quotes.create(
            Quote(
                work_item_id=request.work_item_id,
                created_by_id=principal.user_id,
                supplier_id=request.supplier_id,
                unit=request.unit,
                unit_price=request.unit_price,
                currency=request.currency,
                domain=request.domain,
                location=QuoteLocation(**request.location.model_dump()),
                valid=True,
            )
        )
        await self.session.commit()
        await self.session.refresh(quote)

        logger.info(
            "quote_created",
            quote_id=str(quote.id),
            work_item_id=str(request.work_item_id),
            supplier_id=str(request.supplier_id),
        )
        return quote

    async def list_quotes(
        self,
        principal: UserPrincipal,
        page_request: PageRequest,
        created_by_id: UUID | None = None,
        supplier_id: UUID | None = None,
    ) -> Page[Quote]:
        # The creator filter wins when both are given.
        if created_by_id is not None:
            ensure_self_or_admin(principal, created_by_id)
            return await self.quotes.list_by_creator(created_by_id, page_request)
        if supplier_id is not None:
            ensure_self_or_admin(principal, supplier_id)
            return await self.quotes.list_by_supplier(supplier_id, page_request)
        raise MissingQuoteFilterError()

    async def count_quotes(self, principal: UserPrincipal, user_id: UUID) -> QuoteCounts:
        ensure_self_or_admin(principal, user_id)
        return QuoteCounts(
            created=await self.quotes.count_by_creator(user_id),
            supplied=await self.quotes.count_by_supplier(user_id),
        )
