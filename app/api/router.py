from fastapi import APIRouter

from app.api.v1.routes import (
    auth,
    estimates,
    health,
    participants,
    projects,
    quotes,
    users,
    work_items,
)

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(health.router, prefix="/v1", tags=["health"])
api_router.include_router(users.router, prefix="/v1/users", tags=["users"])
api_router.include_router(projects.router, prefix="/v1/projects", tags=["projects"])
api_router.include_router(
    participants.router,
    prefix="/v1/projects/{project_id}/participants",
    tags=["participants"],
)
api_router.include_router(
    estimates.router,
    prefix="/v1/projects/{project_id}/estimates",
    tags=["estimates"],
)
api_router.include_router(work_items.router, prefix="/v1/work-items", tags=["work-items"])
api_router.include_router(quotes.router, prefix="/v1/quotes", tags=["quotes"])
