from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_audit_service, get_current_principal, require_authority
from app.api.middleware import get_client_ip
from app.core.db import get_db_session
from app.core.security import AccessToken
from app.infra.db.repositories import UserRepository
from app.schemas.auth import (
    JwtAuthenticationResponse,
    LoginRequest,
    SignUpRequest,
    UserAuthenticationResponse,
    UserSummaryResponse,
)
from app.schemas.common import MessageResponse
from app.schemas.user import UserResponse
from app.services.audit_service import SecurityAuditService
from app.services.auth_service import AuthService
from app.services.authorization import UserPrincipal
from app.services.errors import UserNotFoundError

router = APIRouter()


async def get_auth_service(
    session: AsyncSession = Depends(get_db_session),
    audit: SecurityAuditService = Depends(get_audit_service),
) -> AuthService:
    return AuthService(session=session, audit=audit)


def _to_token_response(token: AccessToken) -> JwtAuthenticationResponse:
    return JwtAuthenticationResponse(
        access_token=token.value,
        expiry_date=token.expires_at,
        expires_in_seconds=token.expires_in_seconds,
    )


def _message(text: str) -> MessageResponse:
    return MessageResponse(message=text, timestamp=datetime.now(UTC))


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: SignUpRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    user = await service.register_user(payload, client_ip=get_client_ip(request))
    return UserResponse.model_validate(user)


@router.post("/login", response_model=JwtAuthenticationResponse)
async def login(
    payload: LoginRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> JwtAuthenticationResponse:
    result = await service.login(
        payload.username,
        payload.password,
        client_ip=get_client_ip(request),
    )
    return _to_token_response(result.token)


@router.get("/current", response_model=UserSummaryResponse)
async def current_user(
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> UserSummaryResponse:
    user = await UserRepository(session).get_by_username(principal.username)
    if user is None:
        raise UserNotFoundError(principal.username)
    return UserSummaryResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        role=principal.role,
        authorities=sorted(principal.authorities),
    )


@router.post("/refresh", response_model=JwtAuthenticationResponse)
async def refresh(
    request: Request,
    principal: UserPrincipal = Depends(get_current_principal),
    service: AuthService = Depends(get_auth_service),
) -> JwtAuthenticationResponse:
    token = service.refresh(principal, client_ip=get_client_ip(request))
    return _to_token_response(token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    principal: UserPrincipal = Depends(get_current_principal),
    audit: SecurityAuditService = Depends(get_audit_service),
) -> MessageResponse:
    # Tokens are stateless; logout is recorded for the audit trail only.
    audit.log_security_event(
        "LOGOUT",
        "User logged out",
        client_ip=get_client_ip(request),
        username=principal.username,
    )
    return _message("Logout successful")


@router.get("/validate", response_model=MessageResponse)
async def validate(
    principal: UserPrincipal = Depends(get_current_principal),
) -> MessageResponse:
    return _message("Token is valid")


@router.post("/admin", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_admin(
    payload: SignUpRequest,
    request: Request,
    principal: UserPrincipal = Depends(require_authority("CREATE_ADMIN")),
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    user = await service.create_admin_user(
        payload,
        created_by=principal.username,
        client_ip=get_client_ip(request),
    )
    return UserResponse.model_validate(user)


@router.get("/user-auth", response_model=list[UserAuthenticationResponse])
async def list_user_authentications(
    request: Request,
    principal: UserPrincipal = Depends(require_authority("ADMIN_USERS")),
    service: AuthService = Depends(get_auth_service),
) -> list[UserAuthenticationResponse]:
    user_auths = await service.list_user_auths(
        requested_by=principal.username,
        client_ip=get_client_ip(request),
    )
    return [UserAuthenticationResponse.model_validate(item) for item in user_auths]


@router.get("/user-auth/{username}", response_model=UserAuthenticationResponse)
async def get_user_authentication(
    username: str,
    request: Request,
    principal: UserPrincipal = Depends(require_authority("ADMIN_USERS")),
    service: AuthService = Depends(get_auth_service),
) -> UserAuthenticationResponse:
    user_auth = await service.find_user_auth_by_username(
        username,
        requested_by=principal.username,
        client_ip=get_client_ip(request),
    )
    return UserAuthenticationResponse.model_validate(user_auth)
