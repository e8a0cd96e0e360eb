from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import PageParams, get_page_params, require_authority
from app.api.responses import paged_response
from app.core.db import get_db_session
from app.core.pagination import PaginationHelper, SortDirection
from app.schemas.estimate import CreateWorkItemRequest, WorkItemResponse
from app.services.authorization import UserPrincipal
from app.services.work_item_service import WorkItemService

router = APIRouter()

pagination = PaginationHelper(
    allowed_sort_fields=("code", "name", "last_updated_at"),
    default_sort_field="code",
    default_direction=SortDirection.ASC,
)


async def get_work_item_service(
    session: AsyncSession = Depends(get_db_session),
) -> WorkItemService:
    return WorkItemService(session=session)


@router.post("", response_model=WorkItemResponse, status_code=status.HTTP_201_CREATED)
async def create_work_item(
    payload: CreateWorkItemRequest,
    principal: UserPrincipal = Depends(require_authority("CREATE_PROJECT")),
    service: WorkItemService = Depends(get_work_item_service),
) -> WorkItemResponse:
    work_item = await service.create_work_item(principal, payload)
    return WorkItemResponse.model_validate(work_item)


@router.get("/user/{user_id}", response_model=list[WorkItemResponse])
async def list_user_work_items(
    user_id: UUID,
    request: Request,
    params: PageParams = Depends(get_page_params),
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: WorkItemService = Depends(get_work_item_service),
) -> JSONResponse:
    page_request = pagination.create_page_request(
        page=params.page,
        size=params.size,
        sort=params.sort,
        order_by=params.order_by,
        direction=params.direction,
    )
    page = await service.list_for_user(principal, user_id, page_request)
    return paged_response(request, page, WorkItemResponse.model_validate)


@router.get("/domain/{domain}", response_model=list[WorkItemResponse])
async def list_work_items_by_domain(
    domain: str,
    request: Request,
    params: PageParams = Depends(get_page_params),
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: WorkItemService = Depends(get_work_item_service),
) -> JSONResponse:
    page_request = pagination.create_page_request(
        page=params.page,
        size=params.size,
        sort=params.sort,
        order_by=params.order_by,
        direction=params.direction,
    )
    page = await service.list_by_domain(principal, domain, page_request)
    return paged_response(request, page, WorkItemResponse.model_validate)


@router.get("/{work_item_id}", response_model=WorkItemResponse)
async def get_work_item(
    work_item_id: UUID,
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: WorkItemService = Depends(get_work_item_service),
) -> WorkItemResponse:
    work_item = await service.get_work_item(principal, work_item_id)
    return WorkItemResponse.model_validate(work_item)
