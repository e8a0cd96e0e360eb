from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.middleware import get_client_ip
from app.core.config import get_settings
from app.core.date_filter import DateFilter, create_date_filter
from app.core.db import get_db_session
from app.core.security import decode_access_token
from app.infra.db.repositories import UserAuthenticationRepository, UserRepository
from app.services.audit_service import SecurityAuditService
from app.services.authorization import UserPrincipal, ensure_authority

bearer_scheme = HTTPBearer(auto_error=False)

_INVALID_TOKEN = "Invalid or expired token"


def get_audit_service(request: Request) -> SecurityAuditService:
    audit = getattr(request.app.state, "audit_service", None)
    if audit is None:
        audit = SecurityAuditService()
        request.app.state.audit_service = audit
    return audit


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
    audit: SecurityAuditService = Depends(get_audit_service),
) -> UserPrincipal:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Missing or invalid authorization credentials")

    settings = get_settings()
    try:
        claims = decode_access_token(
            credentials.credentials,
            settings.jwt_secret,
            settings.jwt_algorithm,
        )
    except ValueError as exc:
        audit.log_token_validation_failure(
            credentials.credentials, get_client_ip(request), str(exc)
        )
        raise _unauthorized(_INVALID_TOKEN) from exc

    user_auth = await UserAuthenticationRepository(session).get_by_username(claims.username)
    if user_auth is None or not user_auth.enabled:
        audit.log_token_validation_failure(
            credentials.credentials, get_client_ip(request), "Unknown or disabled user"
        )
        raise _unauthorized(_INVALID_TOKEN)

    user = await UserRepository(session).get_by_username(user_auth.username)
    principal = UserPrincipal(
        user_id=user.id if user is not None else None,
        username=user_auth.username,
        role=user_auth.role,
    )
    request.state.principal = principal
    return principal


def require_authority(authority: str) -> Callable[..., Awaitable[UserPrincipal]]:
    async def dependency(
        principal: UserPrincipal = Depends(get_current_principal),
    ) -> UserPrincipal:
        ensure_authority(principal, authority)
        return principal

    return dependency


@dataclass(slots=True)
class PageParams:
    page: int | None
    size: int | None
    sort: list[str] | None
    order_by: str | None
    direction: str | None


def get_page_params(
    page: int | None = Query(default=None, description="Page number (0-based)"),
    size: int | None = Query(default=None, description="Page size (default 25)"),
    sort: list[str] | None = Query(default=None, description="Sort spec, e.g. 'created_at,desc'"),
    order_by: str | None = Query(default=None, description="Sort field (alternative to sort)"),
    direction: str | None = Query(default=None, description="asc or desc, used with order_by"),
) -> PageParams:
    return PageParams(page=page, size=size, sort=sort, order_by=order_by, direction=direction)


def get_date_filter(
    created_after: str | None = Query(default=None),
    created_before: str | None = Query(default=None),
    updated_after: str | None = Query(default=None),
    updated_before: str | None = Query(default=None),
) -> DateFilter:
    return create_date_filter(
        created_after=created_after,
        created_before=created_before,
        updated_after=updated_after,
        updated_before=updated_before,
    )
