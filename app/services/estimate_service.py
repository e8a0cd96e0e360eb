from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.date_filter import DateFilter
from app.core.logging import get_logger
from app.core.pagination import Page, PageRequest
from app.infra.db.models import Estimate, EstimateGroup, EstimateLine
from app.infra.db.repositories import EstimateRepository, WorkItemRepository
from app.schemas.estimate import (
    CreateEstimateGroupRequest,
    CreateEstimateLineRequest,
    CreateEstimateRequest,
    UpdateEstimateRequest,
)
from app.services.authorization import UserPrincipal
from app.services.errors import (
    EstimateGroupNotFoundError,
    EstimateNotFoundError,
    ResourceMismatchError,
    WorkItemNotFoundError,
)
from app.services.project_service import ProjectService

logger = get_logger(__name__)


def _ensure_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ValueError(f"{name} must be greater than or equal to 0")


class EstimateService:
    def __init__(
        self,
        session: AsyncSession,
        estimates: EstimateRepository | None = None,
        work_items: WorkItemRepository | None = None,
        projects: ProjectService | None = None,
    ) -> None:
        self.session = session
        self.estimates = estimates or EstimateRepository(session)
        self.work_items = work_items or WorkItemRepository(session)
        self.projects = projects or ProjectService(session)

    async def list_estimates(
        self,
        principal: UserPrincipal,
        project_id: UUID,
        page_request: PageRequest,
        date_filter: DateFilter | None = None,
    ) -> Page[Estimate]:
        await self.projects.get_project(principal, project_id)
        return await self.estimates.list_by_project(project_id, page_request, date_filter)

    async def get_estimate(
        self, principal: UserPrincipal, project_id: UUID, estimate_id: UUID
    ) -> Estimate:
        await self.projects.get_project(principal, project_id)
        return await self._get_estimate_in_project(project_id, estimate_id)

    async def create_estimate(
        self,
        principal: UserPrincipal,
        project_id: UUID,
        request: CreateEstimateRequest,
    ) -> Estimate:
        await self.projects.get_project(principal, project_id)
        _ensure_non_negative("overall_multiplier", request.overall_multiplier)

        estimate = await self.estimates.create(
            Estimate(
                project_id=project_id,
                overall_multiplier=request.overall_multiplier,
                groups=[],
            )
        )
        await self.session.commit()
        await self.session.refresh(estimate)

        logger.info("estimate_created", estimate_id=str(estimate.id), project_id=str(project_id))
        return estimate

    async def update_estimate(
        self,
        principal: UserPrincipal,
        project_id: UUID,
        estimate_id: UUID,
        request: UpdateEstimateRequest,
    ) -> Estimate:
        await self.projects.get_project(principal, project_id)
        estimate = await self._get_estimate_in_project(project_id, estimate_id)
        _ensure_non_negative("overall_multiplier", request.overall_multiplier)

        estimate.overall_multiplier = request.overall_multiplier
        await self.estimates.touch(estimate)
        await self.session.commit()
        await self.session.refresh(estimate)
        return estimate

    async def delete_estimate(
        self, principal: UserPrincipal, project_id: UUID, estimate_id: UUID
    ) -> None:
        await self.projects.get_project(principal, project_id)
        estimate = await self._get_estimate_in_project(project_id, estimate_id)
        await self.estimates.delete(estimate)
        await self.session.commit()
        logger.info("estimate_deleted", estimate_id=str(estimate_id))

    async def add_group(
        self,
        principal: UserPrincipal,
        project_id: UUID,
        estimate_id: UUID,
        request: CreateEstimateGroupRequest,
    ) -> EstimateGroup:
        await self.projects.get_project(principal, project_id)
        estimate = await self._get_estimate_in_project(project_id, estimate_id)

        group = await self.estimates.add_group(
            estimate,
            EstimateGroup(
                name=request.name.strip(),
                description=request.description,
                lines=[],
            ),
        )
        await self.session.commit()
        await self.session.refresh(group)
        return group

    async def add_line(
        self,
        principal: UserPrincipal,
        project_id: UUID,
        estimate_id: UUID,
        group_id: UUID,
        request: CreateEstimateLineRequest,
    ) -> EstimateLine:
        await self.projects.get_project(principal, project_id)
        estimate = await self._get_estimate_in_project(project_id, estimate_id)

        group = await self.estimates.get_group(group_id)
        if group is None:
            raise EstimateGroupNotFoundError(group_id)
        if group.estimate_id != estimate.id:
            raise ResourceMismatchError("Estimate group", group_id, "estimate", estimate.id)

        if await self.work_items.get_by_id(request.work_item_id) is None:
            raise WorkItemNotFoundError(request.work_item_id)

        _ensure_non_negative("quantity", request.quantity)
        _ensure_non_negative("multiplier", request.multiplier)
        if request.computed_cost is not None:
            _ensure_non_negative("computed_cost", float(request.computed_cost))

        line = await self.estimates.add_line(
            group,
            EstimateLine(
                estimate_id=estimate.id,
                work_item_id=request.work_item_id,
                quantity=request.quantity,
                estimate_strategy=request.estimate_strategy,
                multiplier=request.multiplier,
                computed_cost=request.computed_cost,
            ),
        )
        await self.estimates.touch(estimate)
        await self.session.commit()
        await self.session.refresh(line)
        return line

    async def count_estimates(self, principal: UserPrincipal, project_id: UUID) -> int:
        await self.projects.get_project(principal, project_id)
        return await self.estimates.count_by_project(project_id)

    async def _get_estimate_in_project(self, project_id: UUID, estimate_id: UUID) -> Estimate:
        estimate = await self.estimates.get_by_id(estimate_id)
        if estimate is None:
            raise EstimateNotFoundError(estimate_id)
        if estimate.project_id != project_id:
            raise ResourceMismatchError("Estimate", estimate_id, "project", project_id)
        return estimate
