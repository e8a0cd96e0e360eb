from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import PageParams, get_page_params, require_authority
from app.api.responses import paged_response
from app.core.db import get_db_session
from app.core.pagination import PaginationHelper, SortDirection
from app.schemas.quote import CreateQuoteRequest, QuoteCountsResponse, QuoteResponse
from app.services.authorization import UserPrincipal
from app.services.quote_service import QuoteService

router = APIRouter()

pagination = PaginationHelper(
    allowed_sort_fields=("created_at", "last_updated_at", "unit_price"),
    default_sort_field="created_at",
    default_direction=SortDirection.DESC,
)


async def get_quote_service(session: AsyncSession = Depends(get_db_session)) -> QuoteService:
    return QuoteService(session=session)


@router.post("", response_model=QuoteResponse, status_code=status.HTTP_201_CREATED)
async def create_quote(
    payload: CreateQuoteRequest,
    principal: UserPrincipal = Depends(require_authority("CREATE_PROJECT")),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteResponse:
    quote = await service.create_quote(principal, payload)
    return QuoteResponse.model_validate(quote)


@router.get("", response_model=list[QuoteResponse])
async def list_quotes(
    request: Request,
    created_by_id: UUID | None = Query(default=None),
    supplier_id: UUID | None = Query(default=None),
    params: PageParams = Depends(get_page_params),
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: QuoteService = Depends(get_quote_service),
) -> JSONResponse:
    page_request = pagination.create_page_request(
        page=params.page,
        size=params.size,
        sort=params.sort,
        order_by=params.order_by,
        direction=params.direction,
    )
    page = await service.list_quotes(
        principal, page_request, created_by_id=created_by_id, supplier_id=supplier_id
    )
    return paged_response(request, page, QuoteResponse.model_validate)


@router.get("/count/{user_id}", response_model=QuoteCountsResponse)
async def count_quotes(
    user_id: UUID,
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteCountsResponse:
    counts = await service.count_quotes(principal, user_id)
    return QuoteCountsResponse(
        user_id=user_id, created_count=counts.created, supplied_count=counts.supplied
    )
