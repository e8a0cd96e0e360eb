from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.dependencies import get_current_principal
from app.api.errors import register_exception_handlers
from app.api.router import api_router
from app.api.v1.routes.auth import get_auth_service
from app.api.v1.routes.estimates import get_estimate_service
from app.api.v1.routes.projects import get_project_service
from app.api.v1.routes.quotes import get_quote_service
from app.api.v1.routes.work_items import get_work_item_service
from app.core.config import Settings
from app.domain.enums import Role, WorkItemDomain
from app.services.audit_service import SecurityAuditService
from app.services.auth_service import AuthService
from app.services.estimate_service import EstimateService
from app.services.project_service import ProjectService
from app.services.quote_service import QuoteService
from app.services.user_service import ContactService, UserService
from app.services.work_item_service import WorkItemService
from tests.unit.fakes import (
    DummySession,
    FakeContactRepository,
    FakeEstimateRepository,
    FakeProjectRepository,
    FakeQuoteRepository,
    FakeUserAuthenticationRepository,
    FakeUserRepository,
    FakeWorkItemRepository,
    RecordingLogger,
    make_principal,
)

SIGN_UP = {
    "username": "alice",
    "password": "Str0ng_Pass!",
    "contact": {"first_name": "Alice", "last_name": "Builder", "email": "alice@buildflow.dev"},
}


class RouteFixture:
    def __init__(self) -> None:
        session = DummySession()
        self.users = FakeUserRepository()
        self.logger = RecordingLogger()
        self.auth_service = AuthService(
            session,
            audit=SecurityAuditService(logger=self.logger),
            users=self.users,
            user_auths=FakeUserAuthenticationRepository(),
            user_service=UserService(
                session,
                users=self.users,
                contacts=ContactService(session, contacts=FakeContactRepository()),
            ),
            settings=Settings(jwt_secret="route-test-secret-with-enough-bytes-1234"),
        )
        self.projects = FakeProjectRepository()
        self.work_items = FakeWorkItemRepository()
        self.project_service = ProjectService(session, projects=self.projects, users=self.users)
        self.work_item_service = WorkItemService(
            session, work_items=self.work_items, users=self.users
        )
        self.estimate_service = EstimateService(
            session,
            estimates=FakeEstimateRepository(),
            work_items=self.work_items,
            projects=self.project_service,
        )
        self.quote_service = QuoteService(
            session, quotes=FakeQuoteRepository(), users=self.users, work_items=self.work_items
        )
        self.builder = self.users.add("builder")
        self.principal = make_principal(Role.USER, user_id=self.builder.id, username="builder")

        app = FastAPI()
        register_exception_handlers(app)
        app.include_router(api_router, prefix="/api")
        app.dependency_overrides[get_auth_service] = lambda: self.auth_service
        app.dependency_overrides[get_project_service] = lambda: self.project_service
        app.dependency_overrides[get_work_item_service] = lambda: self.work_item_service
        app.dependency_overrides[get_estimate_service] = lambda: self.estimate_service
        app.dependency_overrides[get_quote_service] = lambda: self.quote_service
        app.dependency_overrides[get_current_principal] = lambda: self.principal
        self.client = TestClient(app)


def test_register_then_login() -> None:
    fixture = RouteFixture()

    registered = fixture.client.post("/api/auth/register", json=SIGN_UP)
    login = fixture.client.post(
        "/api/auth/login", json={"username": "alice", "password": "Str0ng_Pass!"}
    )

    assert registered.status_code == 201
    assert registered.json()["username"] == "alice"
    assert registered.json()["registered"] is True
    assert login.status_code == 200
    assert login.json()["token_type"] == "Bearer"
    assert login.json()["access_token"]


def test_register_duplicate_username_is_conflict() -> None:
    fixture = RouteFixture()
    fixture.client.post("/api/auth/register", json=SIGN_UP)

    response = fixture.client.post("/api/auth/register", json=SIGN_UP)

    assert response.status_code == 409
    assert response.json()["error_type"] == "CONFLICT_ERROR"


def test_register_with_weak_password_is_validation_error() -> None:
    fixture = RouteFixture()

    response = fixture.client.post(
        "/api/auth/register", json={**SIGN_UP, "password": "alllowercase"}
    )

    assert response.status_code == 400
    assert response.json()["error_type"] == "VALIDATION_ERROR"


def test_login_with_wrong_password_is_unauthorized() -> None:
    fixture = RouteFixture()
    fixture.client.post("/api/auth/register", json=SIGN_UP)

    response = fixture.client.post(
        "/api/auth/login", json={"username": "alice", "password": "Wr0ng_Pass!"}
    )

    assert response.status_code == 401
    assert response.json()["error_type"] == "AUTHENTICATION_ERROR"
    assert "LOGIN_FAILED" in fixture.logger.events()


def test_project_listing_is_paged_with_headers() -> None:
    fixture = RouteFixture()
    for city in ("Calgary", "Banff", "Canmore"):
        created = fixture.client.post(
            "/api/v1/projects",
            json={
                "user_id": str(fixture.builder.id),
                "is_builder": True,
                "location": {"city": city},
            },
        )
        assert created.status_code == 201

    response = fixture.client.get(
        f"/api/v1/projects/user/{fixture.builder.id}", params={"page": 0, "size": 2}
    )

    assert response.status_code == 200
    assert len(response.json()) == 2
    assert response.headers["X-Total-Count"] == "3"
    assert response.headers["X-Total-Pages"] == "2"
    assert response.headers["X-Page"] == "0"
    assert response.headers["X-Size"] == "2"
    assert 'rel="next"' in response.headers["Link"]
    assert 'rel="prev"' not in response.headers["Link"]


def test_viewer_cannot_create_projects() -> None:
    fixture = RouteFixture()
    fixture.principal = make_principal(Role.VIEWER, user_id=fixture.builder.id)

    response = fixture.client.post(
        "/api/v1/projects",
        json={"user_id": str(fixture.builder.id), "is_builder": True, "location": {}},
    )

    assert response.status_code == 403
    assert response.json()["error_type"] == "ACCESS_DENIED"


def test_estimate_count_for_project() -> None:
    fixture = RouteFixture()
    project = fixture.projects.add(builder_id=fixture.builder.id)
    for _ in range(2):
        fixture.client.post(f"/api/v1/projects/{project.id}/estimates", json={})

    response = fixture.client.get(f"/api/v1/projects/{project.id}/estimates/count")

    assert response.status_code == 200
    assert response.json() == {"project_id": str(project.id), "count": 2}


def test_work_items_by_domain() -> None:
    fixture = RouteFixture()
    other = fixture.users.add("other")
    fixture.work_items.add(fixture.builder.id, code="WI-001")
    fixture.work_items.add(other.id, code="WI-002")
    fixture.work_items.add(other.id, code="WI-003", domain=WorkItemDomain.PRIVATE)

    public = fixture.client.get("/api/v1/work-items/domain/public")
    private = fixture.client.get("/api/v1/work-items/domain/PRIVATE")
    invalid = fixture.client.get("/api/v1/work-items/domain/shared")

    assert public.status_code == 200
    assert sorted(item["code"] for item in public.json()) == ["WI-001", "WI-002"]
    assert public.headers["X-Total-Count"] == "2"
    assert private.json() == []
    assert invalid.status_code == 400
    assert invalid.json()["error_type"] == "BAD_REQUEST_ERROR"


def test_private_work_item_of_other_user_is_forbidden() -> None:
    fixture = RouteFixture()
    other = fixture.users.add("other")
    private = fixture.work_items.add(other.id, domain=WorkItemDomain.PRIVATE)

    response = fixture.client.get(f"/api/v1/work-items/{private.id}")

    assert response.status_code == 403
    assert response.json()["error_type"] == "ACCESS_DENIED"


def test_quotes_listing_and_counts() -> None:
    fixture = RouteFixture()
    supplier = fixture.users.add("supplier")
    work_item = fixture.work_items.add(fixture.builder.id)
    created = fixture.client.post(
        "/api/v1/quotes",
        json={
            "work_item_id": str(work_item.id),
            "supplier_id": str(supplier.id),
            "unit": "SQUARE_FOOT",
            "unit_price": "12.50",
            "currency": "CAD",
            "location": {"city": "Calgary"},
        },
    )
    assert created.status_code == 201
    assert created.json()["created_by_id"] == str(fixture.builder.id)

    listing = fixture.client.get(
        "/api/v1/quotes", params={"created_by_id": str(fixture.builder.id)}
    )
    counts = fixture.client.get(f"/api/v1/quotes/count/{fixture.builder.id}")

    assert listing.status_code == 200
    assert [quote["id"] for quote in listing.json()] == [created.json()["id"]]
    assert listing.headers["X-Total-Count"] == "1"
    assert counts.json() == {
        "user_id": str(fixture.builder.id),
        "created_count": 1,
        "supplied_count": 0,
    }


def test_quotes_listing_without_filter_is_bad_request() -> None:
    fixture = RouteFixture()

    response = fixture.client.get("/api/v1/quotes")

    assert response.status_code == 400
    assert response.json()["error_type"] == "BAD_REQUEST_ERROR"
