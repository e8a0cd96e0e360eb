from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
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
from app.domain.enums import ProjectScope
from app.schemas.project import CreateProjectRequest, ProjectResponse
from app.services.authorization import UserPrincipal
from app.services.project_service import ProjectService

router = APIRouter()

pagination = PaginationHelper(
    allowed_sort_fields=("last_updated_at", "created_at"),
    default_sort_field="last_updated_at",
    default_direction=SortDirection.DESC,
)


async def get_project_service(session: AsyncSession = Depends(get_db_session)) -> ProjectService:
    return ProjectService(session=session)


async def _list_projects(
    request: Request,
    service: ProjectService,
    principal: UserPrincipal,
    user_id: UUID,
    scope: ProjectScope,
    params: PageParams,
    date_filter: DateFilter,
) -> JSONResponse:
    page_request = pagination.create_page_request(
        page=params.page,
        size=params.size,
        sort=params.sort,
        order_by=params.order_by,
        direction=params.direction,
    )
    page = await service.list_projects(principal, user_id, scope, page_request, date_filter)
    return paged_response(request, page, ProjectResponse.model_validate)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: CreateProjectRequest,
    principal: UserPrincipal = Depends(require_authority("CREATE_PROJECT")),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    project = await service.create_project(principal, payload)
    return ProjectResponse.model_validate(project)


@router.get("/builder/{builder_id}", response_model=list[ProjectResponse])
async def list_builder_projects(
    builder_id: UUID,
    request: Request,
    params: PageParams = Depends(get_page_params),
    date_filter: DateFilter = Depends(get_date_filter),
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: ProjectService = Depends(get_project_service),
) -> JSONResponse:
    return await _list_projects(
        request, service, principal, builder_id, ProjectScope.BUILDER, params, date_filter
    )


@router.get("/owner/{owner_id}", response_model=list[ProjectResponse])
async def list_owner_projects(
    owner_id: UUID,
    request: Request,
    params: PageParams = Depends(get_page_params),
    date_filter: DateFilter = Depends(get_date_filter),
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: ProjectService = Depends(get_project_service),
) -> JSONResponse:
    return await _list_projects(
        request, service, principal, owner_id, ProjectScope.OWNER, params, date_filter
    )


@router.get("/user/{user_id}", response_model=list[ProjectResponse])
async def list_user_projects(
    user_id: UUID,
    request: Request,
    scope: ProjectScope = Query(default=ProjectScope.BOTH),
    params: PageParams = Depends(get_page_params),
    date_filter: DateFilter = Depends(get_date_filter),
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: ProjectService = Depends(get_project_service),
) -> JSONResponse:
    return await _list_projects(
        request, service, principal, user_id, scope, params, date_filter
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: UUID,
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    project = await service.get_project(principal, project_id)
    return ProjectResponse.model_validate(project)
