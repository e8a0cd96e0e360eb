import asyncio
import contextlib
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from app.api.errors import register_exception_handlers
from app.api.middleware import RateLimitMiddleware
from app.api.router import api_router
from app.core.config import Settings, get_settings
from app.core.db import close_engine, create_schema, get_session_factory, init_engine
from app.core.logging import configure_logging, get_logger
from app.core.rate_limit import LoginRateLimiter, RateLimitRule
from app.infra.db.seed import seed_admin_user
from app.services.audit_service import SecurityAuditService

settings = get_settings()
settings.validate_security_settings()
configure_logging(settings.log_level, settings.log_json)

logger = get_logger(__name__)


def build_rate_limiter(settings: Settings, audit: SecurityAuditService) -> LoginRateLimiter:
    rule = RateLimitRule(
        max_attempts=settings.rate_limit_max_attempts,
        window=timedelta(minutes=settings.rate_limit_window_minutes),
        lockout=timedelta(minutes=settings.rate_limit_lockout_minutes),
    )
    return LoginRateLimiter(rule=rule, protected_paths=settings.rate_limit_paths, auditor=audit)


async def evict_rate_limit_entries(limiter: LoginRateLimiter, interval_seconds: int) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        limiter.evict_stale()


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = init_engine()
    app.state.db_engine = engine
    if settings.db_auto_create:
        await create_schema(engine)

    audit = SecurityAuditService()
    app.state.audit_service = audit

    eviction_task: asyncio.Task | None = None
    if settings.rate_limit_enabled:
        limiter = build_rate_limiter(settings, audit)
        app.state.rate_limiter = limiter
        eviction_task = asyncio.create_task(
            evict_rate_limit_entries(limiter, settings.rate_limit_cleanup_interval_seconds)
        )

    session_factory = get_session_factory()
    async with session_factory() as session:
        await seed_admin_user(session, settings)
        await session.commit()

    logger.info("application_started", env=settings.app_env, rate_limit=settings.rate_limit_enabled)
    yield

    if eviction_task is not None:
        eviction_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await eviction_task
    await close_engine(engine)


app = FastAPI(
    title="BuildFlow API",
    version="0.1.0",
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Innermost, so blocked requests never reach authentication or the routes.
app.add_middleware(RateLimitMiddleware)

if settings.trusted_hosts:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.trusted_hosts,
    )

if settings.force_https:
    app.add_middleware(HTTPSRedirectMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
    expose_headers=["X-Total-Count", "X-Total-Pages", "X-Page", "X-Size", "Link", "Retry-After"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault(
        "Referrer-Policy",
        "strict-origin-when-cross-origin",
    )
    response.headers.setdefault(
        "Cache-Control",
        "no-store",
    )
    if settings.force_https:
        response.headers.setdefault(
            "Strict-Transport-Security",
            "max-age=31536000; includeSubDomains",
        )
    return response


app.include_router(api_router, prefix="/api")


@app.get("/", tags=["meta"])
async def root() -> dict[str, str]:
    return {"service": "buildflow-backend", "status": "ok"}
