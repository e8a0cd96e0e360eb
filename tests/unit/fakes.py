from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

from app.core.date_filter import DateFilter
from app.core.pagination import Page, PageRequest
from app.domain.enums import ProjectScope, Role, WorkItemDomain
from app.infra.db.models import (
    Contact,
    Estimate,
    EstimateGroup,
    EstimateLine,
    Project,
    ProjectParticipant,
    Quote,
    User,
    UserAuthentication,
    WorkItem,
)
from app.services.authorization import UserPrincipal


class DummySession:
    def __init__(self) -> None:
        self.commits = 0

    async def commit(self) -> None:
        self.commits += 1

    async def refresh(self, _: object) -> None:
        return None


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 5, 12, 0, 30, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingLogger:
    def __init__(self) -> None:
        self.records: list[tuple[str, str, dict[str, Any]]] = []

    def _record(self, level: str, event: str, **kwargs: Any) -> None:
        self.records.append((level, event, kwargs))

    def info(self, event: str, **kwargs: Any) -> None:
        self._record("info", event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._record("warning", event, **kwargs)

    def error(self, event: str, **kwargs: Any) -> None:
        self._record("error", event, **kwargs)

    def events(self) -> list[str]:
        return [event for _, event, _ in self.records]


def _page(items: list, page_request: PageRequest) -> Page:
    start = page_request.offset
    return Page(
        items=items[start : start + page_request.size],
        total=len(items),
        page=page_request.page,
        size=page_request.size,
    )


def make_principal(
    role: Role = Role.USER, user_id: UUID | None = None, username: str = "alice"
) -> UserPrincipal:
    return UserPrincipal(user_id=user_id or uuid4(), username=username, role=role)


class FakeContactRepository:
    def __init__(self) -> None:
        self.contacts: dict[UUID, Contact] = {}

    async def get_by_id(self, contact_id: UUID) -> Contact | None:
        return self.contacts.get(contact_id)

    async def get_by_email(self, email: str) -> Contact | None:
        normalized = email.strip().lower()
        for contact in self.contacts.values():
            if contact.email.lower() == normalized:
                return contact
        return None

    async def exists_by_email(self, email: str) -> bool:
        return await self.get_by_email(email) is not None

    async def create(self, contact: Contact) -> Contact:
        contact.id = uuid4()
        self.contacts[contact.id] = contact
        return contact


class FakeUserRepository:
    def __init__(self) -> None:
        self.users: dict[UUID, User] = {}

    def add(self, username: str, email: str | None = None) -> User:
        contact = Contact(
            id=uuid4(),
            first_name=username,
            last_name="Test",
            email=email or f"{username}@buildflow.dev",
            labels=[],
        )
        user = User(
            id=uuid4(),
            username=username,
            email=contact.email,
            contact=contact,
            contact_id=contact.id,
            registered=True,
        )
        self.users[user.id] = user
        return user

    async def get_by_id(self, user_id: UUID) -> User | None:
        return self.users.get(user_id)

    async def get_by_username(self, username: str) -> User | None:
        return next((user for user in self.users.values() if user.username == username), None)

    async def get_by_email(self, email: str) -> User | None:
        normalized = email.strip().lower()
        return next(
            (user for user in self.users.values() if user.email.lower() == normalized), None
        )

    async def exists_by_id(self, user_id: UUID) -> bool:
        return user_id in self.users

    async def exists_by_username(self, username: str) -> bool:
        return await self.get_by_username(username) is not None

    async def exists_by_email(self, email: str) -> bool:
        return await self.get_by_email(email) is not None

    async def create(self, username: str, email: str, contact: Contact, registered: bool) -> User:
        user = User(
            id=uuid4(),
            username=username,
            email=email,
            contact=contact,
            contact_id=contact.id,
            registered=registered,
        )
        self.users[user.id] = user
        return user


class FakeUserAuthenticationRepository:
    def __init__(self) -> None:
        self.user_auths: dict[str, UserAuthentication] = {}

    async def get_by_username(self, username: str) -> UserAuthentication | None:
        return self.user_auths.get(username)

    async def exists_by_username(self, username: str) -> bool:
        return username in self.user_auths

    async def list_all(self) -> list[UserAuthentication]:
        return list(self.user_auths.values())

    async def create(self, user_auth: UserAuthentication) -> UserAuthentication:
        user_auth.id = uuid4()
        user_auth.created_at = datetime.now(UTC)
        self.user_auths[user_auth.username] = user_auth
        return user_auth


class FakeProjectRepository:
    def __init__(self) -> None:
        self.projects: dict[UUID, Project] = {}
        self.list_calls: list[tuple[UUID, ProjectScope, PageRequest, DateFilter | None]] = []

    def add(self, builder_id: UUID | None = None, owner_id: UUID | None = None) -> Project:
        project = Project(
            id=uuid4(),
            builder_id=builder_id,
            owner_id=owner_id,
            participants=[],
            estimates=[],
        )
        self.projects[project.id] = project
        return project

    async def get_by_id(self, project_id: UUID) -> Project | None:
        return self.projects.get(project_id)

    async def exists_by_id(self, project_id: UUID) -> bool:
        return project_id in self.projects

    async def create(self, project: Project) -> Project:
        project.id = uuid4()
        project.location.id = uuid4()
        project.location_id = project.location.id
        now = datetime.now(UTC)
        project.created_at = now
        project.last_updated_at = now
        self.projects[project.id] = project
        return project

    async def list_for_user(
        self,
        user_id: UUID,
        scope: ProjectScope,
        page_request: PageRequest,
        date_filter: DateFilter | None = None,
    ) -> Page[Project]:
        self.list_calls.append((user_id, scope, page_request, date_filter))
        items = [
            project
            for project in self.projects.values()
            if (scope != ProjectScope.OWNER and project.builder_id == user_id)
            or (scope != ProjectScope.BUILDER and project.owner_id == user_id)
        ]
        return _page(items, page_request)


class FakeParticipantRepository:
    def __init__(self) -> None:
        self.participants: dict[UUID, ProjectParticipant] = {}

    async def get_by_id(self, participant_id: UUID) -> ProjectParticipant | None:
        return self.participants.get(participant_id)

    async def list_by_project(
        self, project_id: UUID, page_request: PageRequest
    ) -> Page[ProjectParticipant]:
        items = [p for p in self.participants.values() if p.project_id == project_id]
        return _page(items, page_request)

    async def create(self, participant: ProjectParticipant) -> ProjectParticipant:
        participant.id = uuid4()
        participant.contact_id = participant.contact.id
        self.participants[participant.id] = participant
        return participant

    async def delete(self, participant: ProjectParticipant) -> None:
        self.participants.pop(participant.id, None)


class FakeWorkItemRepository:
    def __init__(self) -> None:
        self.work_items: dict[UUID, WorkItem] = {}

    def add(
        self,
        user_id: UUID,
        code: str = "WI-001",
        domain: WorkItemDomain = WorkItemDomain.PUBLIC,
    ) -> WorkItem:
        now = datetime.now(UTC)
        work_item = WorkItem(
            id=uuid4(),
            code=code,
            name="Framing",
            optional=False,
            user_id=user_id,
            default_group_name="Unassigned",
            domain=domain,
            created_at=now,
            last_updated_at=now,
        )
        self.work_items[work_item.id] = work_item
        return work_item

    async def get_by_id(self, work_item_id: UUID) -> WorkItem | None:
        return self.work_items.get(work_item_id)

    async def list_by_user(self, user_id: UUID, page_request: PageRequest) -> Page[WorkItem]:
        items = [item for item in self.work_items.values() if item.user_id == user_id]
        return _page(items, page_request)

    async def list_by_domain(
        self,
        domain: WorkItemDomain,
        page_request: PageRequest,
        user_id: UUID | None = None,
    ) -> Page[WorkItem]:
        items = [
            item
            for item in self.work_items.values()
            if item.domain == domain and (user_id is None or item.user_id == user_id)
        ]
        return _page(items, page_request)

    async def create(self, work_item: WorkItem) -> WorkItem:
        work_item.id = uuid4()
        now = datetime.now(UTC)
        work_item.created_at = now
        work_item.last_updated_at = now
        self.work_items[work_item.id] = work_item
        return work_item


class FakeEstimateRepository:
    def __init__(self) -> None:
        self.estimates: dict[UUID, Estimate] = {}
        self.groups: dict[UUID, EstimateGroup] = {}

    async def get_by_id(self, estimate_id: UUID) -> Estimate | None:
        return self.estimates.get(estimate_id)

    async def get_group(self, group_id: UUID) -> EstimateGroup | None:
        return self.groups.get(group_id)

    async def list_by_project(
        self,
        project_id: UUID,
        page_request: PageRequest,
        date_filter: DateFilter | None = None,
    ) -> Page[Estimate]:
        items = [e for e in self.estimates.values() if e.project_id == project_id]
        return _page(items, page_request)

    async def count_by_project(self, project_id: UUID) -> int:
        return sum(1 for e in self.estimates.values() if e.project_id == project_id)

    async def create(self, estimate: Estimate) -> Estimate:
        estimate.id = uuid4()
        now = datetime.now(UTC)
        estimate.created_at = now
        estimate.last_updated_at = now
        self.estimates[estimate.id] = estimate
        return estimate

    async def add_group(self, estimate: Estimate, group: EstimateGroup) -> EstimateGroup:
        estimate.groups.append(group)
        group.id = uuid4()
        group.estimate_id = estimate.id
        estimate.touch()
        self.groups[group.id] = group
        return group

    async def add_line(self, group: EstimateGroup, line: EstimateLine) -> EstimateLine:
        group.lines.append(line)
        line.id = uuid4()
        line.group_id = group.id
        return line

    async def touch(self, estimate: Estimate) -> None:
        estimate.touch()

    async def delete(self, estimate: Estimate) -> None:
        self.estimates.pop(estimate.id, None)


class FakeQuoteRepository:
    def __init__(self) -> None:
        self.quotes: dict[UUID, Quote] = {}

    async def get_by_id(self, quote_id: UUID) -> Quote | None:
        return self.quotes.get(quote_id)

    async def list_by_creator(self, user_id: UUID, page_request: PageRequest) -> Page[Quote]:
        items = [q for q in self.quotes.values() if q.created_by_id == user_id]
        return _page(items, page_request)

    async def list_by_supplier(self, user_id: UUID, page_request: PageRequest) -> Page[Quote]:
        items = [q for q in self.quotes.values() if q.supplier_id == user_id]
        return _page(items, page_request)

    async def count_by_creator(self, user_id: UUID) -> int:
        return sum(1 for q in self.quotes.values() if q.created_by_id == user_id)

    async def count_by_supplier(self, user_id: UUID) -> int:
        return sum(1 for q in self.quotes.values() if q.supplier_id == user_id)

    async def create(self, quote: Quote) -> Quote:
        quote.id = uuid4()
        quote.location.id = uuid4()
        quote.location_id = quote.location.id
        now = datetime.now(UTC)
        quote.created_at = now
        quote.last_updated_at = now
        self.quotes[quote.id] = quote
        return quote
