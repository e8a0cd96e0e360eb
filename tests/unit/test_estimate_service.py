from decimal import Decimal
from uuid import uuid4

import pytest

from app.core.pagination import PageRequest, SortDirection, SortOrder
from app.domain.enums import EstimateLineStrategy, Role
from app.schemas.estimate import (
    CreateEstimateGroupRequest,
    CreateEstimateLineRequest,
    CreateEstimateRequest,
    CreateWorkItemRequest,
    UpdateEstimateRequest,
)
from app.services.errors import (
    AccessDeniedError,
    EstimateGroupNotFoundError,
    EstimateNotFoundError,
    ResourceMismatchError,
    UserNotFoundError,
    WorkItemNotFoundError,
)
from app.services.estimate_service import EstimateService
from app.services.project_service import ProjectService
from app.services.work_item_service import WorkItemService
from tests.unit.fakes import (
    DummySession,
    FakeEstimateRepository,
    FakeProjectRepository,
    FakeUserRepository,
    FakeWorkItemRepository,
    make_principal,
)

PAGE = PageRequest(page=0, size=25, orders=(SortOrder("last_updated_at", SortDirection.DESC),))


class EstimateFixture:
    def __init__(self) -> None:
        self.session = DummySession()
        self.users = FakeUserRepository()
        self.projects = FakeProjectRepository()
        self.estimates = FakeEstimateRepository()
        self.work_items = FakeWorkItemRepository()
        self.service = EstimateService(
            self.session,
            estimates=self.estimates,
            work_items=self.work_items,
            projects=ProjectService(self.session, projects=self.projects, users=self.users),
        )
        self.owner = self.users.add("owner")
        self.principal = make_principal(user_id=self.owner.id, username="owner")
        self.project = self.projects.add(owner_id=self.owner.id)
        self.work_item = self.work_items.add(self.owner.id)

    async def create_estimate(self, project_id=None):
        return await self.service.create_estimate(
            self.principal,
            project_id or self.project.id,
            CreateEstimateRequest(overall_multiplier=1.1),
        )


@pytest.mark.asyncio
async def test_create_and_list_estimates() -> None:
    fixture = EstimateFixture()

    estimate = await fixture.create_estimate()
    page = await fixture.service.list_estimates(fixture.principal, fixture.project.id, PAGE)

    assert estimate.project_id == fixture.project.id
    assert estimate.overall_multiplier == pytest.approx(1.1)
    assert estimate.groups == []
    assert [item.id for item in page.items] == [estimate.id]
    assert await fixture.service.count_estimates(fixture.principal, fixture.project.id) == 1


@pytest.mark.asyncio
async def test_estimates_require_project_membership() -> None:
    fixture = EstimateFixture()

    with pytest.raises(AccessDeniedError):
        await fixture.service.list_estimates(make_principal(), fixture.project.id, PAGE)


@pytest.mark.asyncio
async def test_update_estimate_changes_multiplier_and_touches() -> None:
    fixture = EstimateFixture()
    estimate = await fixture.create_estimate()
    created = estimate.last_updated_at

    updated = await fixture.service.update_estimate(
        fixture.principal,
        fixture.project.id,
        estimate.id,
        UpdateEstimateRequest(overall_multiplier=2.0),
    )

    assert updated.overall_multiplier == 2.0
    assert updated.last_updated_at >= created


@pytest.mark.asyncio
async def test_estimate_addressed_through_other_project_is_rejected() -> None:
    fixture = EstimateFixture()
    estimate = await fixture.create_estimate()
    other_project = fixture.projects.add(owner_id=fixture.owner.id)

    with pytest.raises(ResourceMismatchError):
        await fixture.service.get_estimate(fixture.principal, other_project.id, estimate.id)
    with pytest.raises(EstimateNotFoundError):
        await fixture.service.get_estimate(fixture.principal, fixture.project.id, uuid4())


@pytest.mark.asyncio
async def test_delete_estimate() -> None:
    fixture = EstimateFixture()
    estimate = await fixture.create_estimate()

    await fixture.service.delete_estimate(fixture.principal, fixture.project.id, estimate.id)

    assert await fixture.service.count_estimates(fixture.principal, fixture.project.id) == 0


@pytest.mark.asyncio
async def test_add_group_and_line() -> None:
    fixture = EstimateFixture()
    estimate = await fixture.create_estimate()

    group = await fixture.service.add_group(
        fixture.principal,
        fixture.project.id,
        estimate.id,
        CreateEstimateGroupRequest(name="  Framing  "),
    )
    line = await fixture.service.add_line(
        fixture.principal,
        fixture.project.id,
        estimate.id,
        group.id,
        CreateEstimateLineRequest(
            work_item_id=fixture.work_item.id,
            quantity=12,
            estimate_strategy=EstimateLineStrategy.LOWEST,
            computed_cost=Decimal("1500.00"),
        ),
    )

    assert group.name == "Framing"
    assert group.estimate_id == estimate.id
    assert estimate.groups == [group]
    assert line.group_id == group.id
    assert line.estimate_id == estimate.id
    assert line.multiplier == 1.0
    assert group.lines == [line]


@pytest.mark.asyncio
async def test_add_line_validates_group_and_work_item() -> None:
    fixture = EstimateFixture()
    first = await fixture.create_estimate()
    second = await fixture.create_estimate()
    group = await fixture.service.add_group(
        fixture.principal, fixture.project.id, first.id, CreateEstimateGroupRequest(name="Roof")
    )
    request = CreateEstimateLineRequest(work_item_id=fixture.work_item.id, quantity=1)

    with pytest.raises(ResourceMismatchError):
        await fixture.service.add_line(
            fixture.principal, fixture.project.id, second.id, group.id, request
        )
    with pytest.raises(EstimateGroupNotFoundError):
        await fixture.service.add_line(
            fixture.principal, fixture.project.id, first.id, uuid4(), request
        )
    with pytest.raises(WorkItemNotFoundError):
        await fixture.service.add_line(
            fixture.principal,
            fixture.project.id,
            first.id,
            group.id,
            CreateEstimateLineRequest(work_item_id=uuid4(), quantity=1),
        )


@pytest.mark.asyncio
async def test_work_item_lifecycle() -> None:
    session = DummySession()
    users = FakeUserRepository()
    work_items = FakeWorkItemRepository()
    service = WorkItemService(session, work_items=work_items, users=users)
    user = users.add("estimator")
    principal = make_principal(user_id=user.id, username="estimator")

    work_item = await service.create_work_item(
        principal, CreateWorkItemRequest(code=" WI-100 ", name="Drywall", user_id=user.id)
    )
    page = await service.list_for_user(principal, user.id, PAGE)

    assert work_item.code == "WI-100"
    assert work_item.default_group_name == "Unassigned"
    assert await service.get_work_item(principal, work_item.id) is work_item
    assert page.items == [work_item]

    with pytest.raises(AccessDeniedError):
        await service.list_for_user(make_principal(), user.id, PAGE)
    with pytest.raises(UserNotFoundError):
        await service.create_work_item(
            make_principal(Role.ADMIN),
            CreateWorkItemRequest(code="WI-101", name="Paint", user_id=uuid4()),
        )
