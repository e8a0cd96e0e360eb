from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_principal, require_authority
from app.core.db import get_db_session
from app.domain.enums import ContactLabel
from app.schemas.user import CreateUserRequest, UserResponse
from app.services.authorization import UserPrincipal
from app.services.user_service import UserService

router = APIRouter()


async def get_user_service(session: AsyncSession = Depends(get_db_session)) -> UserService:
    return UserService(session=session)


@router.post("/builders", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_builder(
    payload: CreateUserRequest,
    _: UserPrincipal = Depends(require_authority("CREATE_PROJECT")),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.create_party(payload, ContactLabel.BUILDER)
    return UserResponse.model_validate(user)


@router.post("/owners", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_owner(
    payload: CreateUserRequest,
    _: UserPrincipal = Depends(require_authority("CREATE_PROJECT")),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.create_party(payload, ContactLabel.OWNER)
    return UserResponse.model_validate(user)


@router.get("/{username}", response_model=UserResponse)
async def get_user(
    username: str,
    principal: UserPrincipal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.get_by_username(principal, username)
    return UserResponse.model_validate(user)
