from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.domain.enums import EstimateLineStrategy, WorkItemDomain
from app.infra.db.models import UNASSIGNED_GROUP_NAME


class CreateWorkItemRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=250)
    description: str | None = Field(default=None, max_length=1000)
    optional: bool = False
    user_id: UUID
    default_group_name: str = Field(default=UNASSIGNED_GROUP_NAME, min_length=1, max_length=100)
    domain: WorkItemDomain = WorkItemDomain.PUBLIC


class WorkItemResponse(BaseModel):
    id: UUID
    code: str
    name: str
    description: str | None
    optional: bool
    user_id: UUID
    default_group_name: str
    domain: WorkItemDomain
    created_at: datetime
    last_updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CreateEstimateLineRequest(BaseModel):
    work_item_id: UUID
    quantity: float = Field(ge=0)
    estimate_strategy: EstimateLineStrategy = EstimateLineStrategy.AVERAGE
    multiplier: float = Field(default=1.0, ge=0)
    computed_cost: Decimal | None = Field(default=None, ge=0, max_digits=17, decimal_places=2)


class EstimateLineResponse(BaseModel):
    id: UUID
    work_item_id: UUID
    group_id: UUID | None
    quantity: float
    estimate_strategy: EstimateLineStrategy
    multiplier: float
    computed_cost: Decimal | None
    created_at: datetime
    last_updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CreateEstimateGroupRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)


class EstimateGroupResponse(BaseModel):
    id: UUID
    name: str
    description: str | None
    lines: list[EstimateLineResponse]

    model_config = ConfigDict(from_attributes=True)


class CreateEstimateRequest(BaseModel):
    overall_multiplier: float = Field(default=1.0, ge=0)


class UpdateEstimateRequest(BaseModel):
    overall_multiplier: float = Field(ge=0)


class EstimateResponse(BaseModel):
    id: UUID
    project_id: UUID
    overall_multiplier: float
    groups: list[EstimateGroupResponse]
    created_at: datetime
    last_updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EstimateCountResponse(BaseModel):
    project_id: UUID
    count: int
