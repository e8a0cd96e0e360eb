from uuid import uuid4

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from app.api.errors import register_exception_handlers
from app.services.audit_service import SecurityAuditService
from app.services.errors import (
    AccessDeniedError,
    AuthenticationError,
    DuplicateUserError,
    ProjectNotFoundError,
    ResourceMismatchError,
)
from tests.unit.fakes import RecordingLogger


class Payload(BaseModel):
    name: str = Field(min_length=3)


def build_client() -> tuple[TestClient, RecordingLogger]:
    app = FastAPI()
    register_exception_handlers(app)
    logger = RecordingLogger()
    app.state.audit_service = SecurityAuditService(logger=logger)

    @app.post("/validate")
    async def validate(payload: Payload) -> dict[str, str]:
        return {"name": payload.name}

    @app.get("/login")
    async def login() -> None:
        raise AuthenticationError()

    @app.get("/forbidden")
    async def forbidden() -> None:
        raise AccessDeniedError("You are not a member of this project")

    @app.get("/duplicate")
    async def duplicate() -> None:
        raise DuplicateUserError("username", "alice")

    @app.get("/missing")
    async def missing() -> None:
        raise ProjectNotFoundError(uuid4())

    @app.get("/mismatch")
    async def mismatch() -> None:
        raise ResourceMismatchError("Estimate", uuid4(), "project", uuid4())

    @app.get("/http")
    async def http_error() -> None:
        raise HTTPException(
            status_code=401, detail="Missing token", headers={"WWW-Authenticate": "Bearer"}
        )

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("database exploded")

    return TestClient(app, raise_server_exceptions=False), logger


def test_validation_errors_are_bad_requests() -> None:
    client, _ = build_client()

    response = client.post("/validate", json={"name": "x"})

    assert response.status_code == 400
    body = response.json()
    assert body["error_type"] == "VALIDATION_ERROR"
    assert body["message"] == "Validation failed"
    assert body["errors"][0].startswith("name:")
    assert body["path"] == "/validate"
    assert body["method"] == "POST"


def test_authentication_error_is_401_and_audited() -> None:
    client, logger = build_client()

    response = client.get("/login")

    assert response.status_code == 401
    assert response.json()["error_type"] == "AUTHENTICATION_ERROR"
    assert response.json()["errors"] == ["Invalid username or password"]
    assert logger.events() == ["UNAUTHORIZED_ACCESS"]


def test_access_denied_is_403() -> None:
    client, logger = build_client()

    response = client.get("/forbidden")

    assert response.status_code == 403
    assert response.json()["error_type"] == "ACCESS_DENIED"
    assert logger.records[0][2]["username"] == "anonymous"


def test_domain_errors_map_to_status_codes() -> None:
    client, _ = build_client()

    duplicate = client.get("/duplicate")
    missing = client.get("/missing")
    mismatch = client.get("/mismatch")

    assert (duplicate.status_code, duplicate.json()["error_type"]) == (409, "CONFLICT_ERROR")
    assert duplicate.json()["errors"] == ["Account with username 'alice' already exists!"]
    assert (missing.status_code, missing.json()["error_type"]) == (404, "NOT_FOUND")
    assert (mismatch.status_code, mismatch.json()["error_type"]) == (400, "BAD_REQUEST_ERROR")


def test_http_exception_keeps_headers() -> None:
    client, _ = build_client()

    response = client.get("/http")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["error_type"] == "AUTHENTICATION_REQUIRED"
    assert response.json()["errors"] == ["Missing token"]


def test_unknown_route_uses_error_body() -> None:
    client, _ = build_client()

    response = client.get("/does-not-exist")

    assert response.status_code == 404
    assert response.json()["error_type"] == "NOT_FOUND"


def test_unexpected_errors_do_not_leak_details() -> None:
    client, _ = build_client()

    response = client.get("/boom")

    assert response.status_code == 500
    body = response.json()
    assert body["error_type"] == "INTERNAL_ERROR"
    assert "database exploded" not in response.text
