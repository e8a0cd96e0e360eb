from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    PageParams,
    get_date_filter,
    get_page_params,
    require_authority,
)
from app.api.responses import paged_response
from app.core.date_filter import DateFilter
from app.core.db import get_db_session
from app.core.pagination import PaginationHelper, SortDirection
from app.schemas.estimate import (
    CreateEstimateGroupRequest,
    CreateEstimateLineRequest,
    CreateEstimateRequest,
    EstimateCountResponse,
    EstimateGroupResponse,
    EstimateLineResponse,
    EstimateResponse,
    UpdateEstimateRequest,
)
from app.services.authorization import UserPrincipal
from app.services.estimate_service import EstimateService

router = APIRouter()

pagination = PaginationHelper(
    allowed_sort_fields=("last_updated_at", "created_at"),
    default_sort_field="last_updated_at",
    default_direction=SortDirection.DESC,
)


async def get_estimate_service(
    session: AsyncSession = Depends(get_db_session),
) -> EstimateService:
    return EstimateService(session=session)


@router.get("", response_model=list[EstimateResponse])
async def list_estimates(
    project_id: UUID,
    request: Request,
    params: PageParams = Depends(get_page_params),
    date_filter: DateFilter = Depends(get_date_filter),
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: EstimateService = Depends(get_estimate_service),
) -> JSONResponse:
    page_request = pagination.create_page_request(
        page=params.page,
        size=params.size,
        sort=params.sort,
        order_by=params.order_by,
        direction=params.direction,
    )
    page = await service.list_estimates(principal, project_id, page_request, date_filter)
    return paged_response(request, page, EstimateResponse.model_validate)


@router.get("/count", response_model=EstimateCountResponse)
async def count_estimates(
    project_id: UUID,
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: EstimateService = Depends(get_estimate_service),
) -> EstimateCountResponse:
    count = await service.count_estimates(principal, project_id)
    return EstimateCountResponse(project_id=project_id, count=count)


@router.get("/{estimate_id}", response_model=EstimateResponse)
async def get_estimate(
    project_id: UUID,
    estimate_id: UUID,
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: EstimateService = Depends(get_estimate_service),
) -> EstimateResponse:
    estimate = await service.get_estimate(principal, project_id, estimate_id)
    return EstimateResponse.model_validate(estimate)


@router.post("", response_model=EstimateResponse, status_code=status.HTTP_201_CREATED)
async def create_estimate(
    project_id: UUID,
    payload: CreateEstimateRequest,
    principal: UserPrincipal = Depends(require_authority("CREATE_PROJECT")),
    service: EstimateService = Depends(get_estimate_service),
) -> EstimateResponse:
    estimate = await service.create_estimate(principal, project_id, payload)
    return EstimateResponse.model_validate(estimate)


@router.put("/{estimate_id}", response_model=EstimateResponse)
async def update_estimate(
    project_id: UUID,
    estimate_id: UUID,
    payload: UpdateEstimateRequest,
    principal: UserPrincipal = Depends(require_authority("UPDATE_PROJECT")),
    service: EstimateService = Depends(get_estimate_service),
) -> EstimateResponse:
    estimate = await service.update_estimate(principal, project_id, estimate_id, payload)
    return EstimateResponse.model_validate(estimate)


@router.delete("/{estimate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_estimate(
    project_id: UUID,
    estimate_id: UUID,
    principal: UserPrincipal = Depends(require_authority("DELETE_PROJECT")),
    service: EstimateService = Depends(get_estimate_service),
) -> Response:
    await service.delete_estimate(principal, project_id, estimate_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{estimate_id}/groups",
    response_model=EstimateGroupResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_group(
    project_id: UUID,
    estimate_id: UUID,
    payload: CreateEstimateGroupRequest,
    principal: UserPrincipal = Depends(require_authority("UPDATE_PROJECT")),
    service: EstimateService = Depends(get_estimate_service),
) -> EstimateGroupResponse:
    group = await service.add_group(principal, project_id, estimate_id, payload)
    return EstimateGroupResponse.model_validate(group)


@router.post(
    "/{estimate_id}/groups/{group_id}/lines",
    response_model=EstimateLineResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_line(
    project_id: UUID,
    estimate_id: UUID,
    group_id: UUID,
    payload: CreateEstimateLineRequest,
    principal: UserPrincipal = Depends(require_authority("UPDATE_PROJECT")),
    service: EstimateService = Depends(get_estimate_service),
) -> EstimateLineResponse:
    line = await service.add_line(principal, project_id, estimate_id, group_id, payload)
    return EstimateLineResponse.model_validate(line)
