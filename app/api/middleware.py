from datetime import UTC, datetime

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.core.logging import get_logger
from app.core.rate_limit import LoginRateLimiter
from app.domain.enums import ResponseErrorType
from app.schemas.common import RateLimitErrorResponse

logger = get_logger(__name__)

UNKNOWN_CLIENT = "unknown"


def get_client_ip(request: Request) -> str:
    """Client key for a request: first ``X-Forwarded-For`` hop, else the peer address."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",", 1)[0].strip()
        if first_hop:
            return first_hop
    if request.client is not None and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def rate_limited_response(request: Request, limiter: LoginRateLimiter) -> JSONResponse:
    retry_after = limiter.rule.retry_after
    body = RateLimitErrorResponse(
        timestamp=datetime.now(UTC),
        status=status.HTTP_429_TOO_MANY_REQUESTS,
        message=ResponseErrorType.RATE_LIMIT_EXCEEDED.default_message,
        errors=[f"Rate limit exceeded. Please try again in {retry_after}."],
        path=request.url.path,
        method=request.method,
        error_type=ResponseErrorType.RATE_LIMIT_EXCEEDED,
        retry_after=retry_after,
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=body.model_dump(mode="json"),
        headers={"Retry-After": str(limiter.rule.retry_after_seconds)},
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects requests to protected auth paths from clients that are locked out.

    The limiter is looked up on ``app.state.rate_limiter`` per request, so the
    middleware is a no-op until the application lifespan has installed one.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        limiter: LoginRateLimiter | None = getattr(request.app.state, "rate_limiter", None)
        path = request.url.path
        if limiter is None or not limiter.applies_to(path):
            return await call_next(request)

        client_key = get_client_ip(request)
        if limiter.record_attempt_and_check(client_key, path):
            return await call_next(request)

        logger.warning("rate_limit_blocked", client_key=client_key, path=path)
        return rate_limited_response(request, limiter)
