from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import PageParams, get_page_params, require_authority
from app.api.responses import paged_response
from app.core.db import get_db_session
from app.core.pagination import PaginationHelper, SortDirection
from app.schemas.project import ProjectParticipantRequest, ProjectParticipantResponse
from app.services.authorization import UserPrincipal
from app.services.project_service import ParticipantService

router = APIRouter()

pagination = PaginationHelper(
    allowed_sort_fields=("contact_id", "role"),
    default_sort_field="contact_id",
    default_direction=SortDirection.ASC,
)


async def get_participant_service(
    session: AsyncSession = Depends(get_db_session),
) -> ParticipantService:
    return ParticipantService(session=session)


@router.get("", response_model=list[ProjectParticipantResponse])
async def list_participants(
    project_id: UUID,
    request: Request,
    params: PageParams = Depends(get_page_params),
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: ParticipantService = Depends(get_participant_service),
) -> JSONResponse:
    page_request = pagination.create_page_request(
        page=params.page,
        size=params.size,
        sort=params.sort,
        order_by=params.order_by,
        direction=params.direction,
    )
    page = await service.list_participants(principal, project_id, page_request)
    return paged_response(request, page, ProjectParticipantResponse.model_validate)


@router.get("/{participant_id}", response_model=ProjectParticipantResponse)
async def get_participant(
    project_id: UUID,
    participant_id: UUID,
    principal: UserPrincipal = Depends(require_authority("VIEW_PROJECT")),
    service: ParticipantService = Depends(get_participant_service),
) -> ProjectParticipantResponse:
    participant = await service.get_participant(principal, project_id, participant_id)
    return ProjectParticipantResponse.model_validate(participant)


@router.post("", response_model=ProjectParticipantResponse, status_code=status.HTTP_201_CREATED)
async def create_participant(
    project_id: UUID,
    payload: ProjectParticipantRequest,
    principal: UserPrincipal = Depends(require_authority("CREATE_PROJECT")),
    service: ParticipantService = Depends(get_participant_service),
) -> ProjectParticipantResponse:
    participant = await service.create_participant(principal, project_id, payload)
    return ProjectParticipantResponse.model_validate(participant)


@router.put("/{participant_id}", response_model=ProjectParticipantResponse)
async def update_participant(
    project_id: UUID,
    participant_id: UUID,
    payload: ProjectParticipantRequest,
    principal: UserPrincipal = Depends(require_authority("UPDATE_PROJECT")),
    service: ParticipantService = Depends(get_participant_service),
) -> ProjectParticipantResponse:
    participant = await service.update_participant(principal, project_id, participant_id, payload)
    return ProjectParticipantResponse.model_validate(participant)


@router.delete("/{participant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_participant(
    project_id: UUID,
    participant_id: UUID,
    principal: UserPrincipal = Depends(require_authority("DELETE_PROJECT")),
    service: ParticipantService = Depends(get_participant_service),
) -> Response:
    await service.delete_participant(principal, project_id, participant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
