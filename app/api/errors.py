from datetime import UTC, datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException

from app.api.middleware import get_client_ip
from app.core.logging import get_logger
from app.domain.enums import ResponseErrorType
from app.schemas.common import ErrorResponse
from app.services.errors import (
    AccessDeniedError,
    AuthenticationError,
    DuplicateContactError,
    DuplicateUserError,
)

logger = get_logger(__name__)

_HTTP_STATUS_ERROR_TYPES: dict[int, ResponseErrorType] = {
    status.HTTP_400_BAD_REQUEST: ResponseErrorType.BAD_REQUEST_ERROR,
    status.HTTP_401_UNAUTHORIZED: ResponseErrorType.AUTHENTICATION_REQUIRED,
    status.HTTP_403_FORBIDDEN: ResponseErrorType.ACCESS_DENIED,
    status.HTTP_404_NOT_FOUND: ResponseErrorType.NOT_FOUND,
    status.HTTP_409_CONFLICT: ResponseErrorType.CONFLICT_ERROR,
    422: ResponseErrorType.VALIDATION_ERROR,
    status.HTTP_429_TOO_MANY_REQUESTS: ResponseErrorType.RATE_LIMIT_EXCEEDED,
}


def build_error_body(
    request: Request,
    status_code: int,
    error_type: ResponseErrorType,
    message: str | None = None,
    errors: list[str] | None = None,
) -> dict:
    return ErrorResponse(
        timestamp=datetime.now(UTC),
        status=status_code,
        message=message or error_type.default_message,
        errors=errors or [],
        path=request.url.path,
        method=request.method,
        error_type=error_type,
    ).model_dump(mode="json")


def error_response(
    request: Request,
    status_code: int,
    error_type: ResponseErrorType,
    message: str | None = None,
    errors: list[str] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    if status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        _audit_unauthorized(request)
    return JSONResponse(
        status_code=status_code,
        content=build_error_body(request, status_code, error_type, message, errors),
        headers=headers,
    )


def _audit_unauthorized(request: Request) -> None:
    audit = getattr(request.app.state, "audit_service", None)
    if audit is None:
        return
    principal = getattr(request.state, "principal", None)
    audit.log_unauthorized_access(
        resource=request.url.path,
        method=request.method,
        client_ip=get_client_ip(request),
        username=principal.username if principal is not None else None,
    )


def _format_validation_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        ResponseErrorType.VALIDATION_ERROR,
        errors=[_format_validation_error(error) for error in exc.errors()],
    )


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    error_type = _HTTP_STATUS_ERROR_TYPES.get(exc.status_code, ResponseErrorType.BAD_REQUEST_ERROR)
    if exc.status_code >= 500:
        error_type = ResponseErrorType.INTERNAL_ERROR
    detail = exc.detail if isinstance(exc.detail, str) else None
    return error_response(
        request,
        exc.status_code,
        error_type,
        errors=[detail] if detail else None,
        headers=getattr(exc, "headers", None),
    )


async def handle_authentication_error(request: Request, exc: AuthenticationError) -> JSONResponse:
    return error_response(
        request,
        status.HTTP_401_UNAUTHORIZED,
        ResponseErrorType.AUTHENTICATION_ERROR,
        errors=[str(exc)],
    )


async def handle_permission_error(request: Request, exc: PermissionError) -> JSONResponse:
    return error_response(
        request,
        status.HTTP_403_FORBIDDEN,
        ResponseErrorType.ACCESS_DENIED,
        errors=[str(exc)],
    )


async def handle_conflict(request: Request, exc: Exception) -> JSONResponse:
    return error_response(
        request,
        status.HTTP_409_CONFLICT,
        ResponseErrorType.CONFLICT_ERROR,
        errors=[str(exc)],
    )


async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("integrity_error", path=request.url.path, error=str(exc.orig))
    return error_response(
        request,
        status.HTTP_409_CONFLICT,
        ResponseErrorType.CONFLICT_ERROR,
        errors=["Data integrity violation"],
    )


async def handle_not_found(request: Request, exc: LookupError) -> JSONResponse:
    return error_response(
        request,
        status.HTTP_404_NOT_FOUND,
        ResponseErrorType.NOT_FOUND,
        errors=[str(exc)],
    )


async def handle_bad_request(request: Request, exc: ValueError) -> JSONResponse:
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        ResponseErrorType.BAD_REQUEST_ERROR,
        errors=[str(exc)],
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, method=request.method)
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ResponseErrorType.INTERNAL_ERROR,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(AuthenticationError, handle_authentication_error)
    app.add_exception_handler(AccessDeniedError, handle_permission_error)
    app.add_exception_handler(PermissionError, handle_permission_error)
    app.add_exception_handler(DuplicateUserError, handle_conflict)
    app.add_exception_handler(DuplicateContactError, handle_conflict)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(LookupError, handle_not_found)
    app.add_exception_handler(ValueError, handle_bad_request)
    app.add_exception_handler(Exception, handle_unexpected_error)
