from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.domain.enums import ProjectRole
from app.schemas.user import AddressRequest, AddressResponse, ContactRequest


class CreateProjectRequest(BaseModel):
    user_id: UUID
    is_builder: bool
    location: AddressRequest


class ProjectLocationResponse(AddressResponse):
    id: UUID


class ProjectResponse(BaseModel):
    id: UUID
    builder_id: UUID | None
    owner_id: UUID | None
    location: ProjectLocationResponse
    created_at: datetime
    last_updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectParticipantRequest(BaseModel):
    # Parsed by the service so the error names the accepted roles.
    role: str = Field(min_length=1, max_length=20)
    contact: ContactRequest


class ProjectParticipantResponse(BaseModel):
    id: UUID
    project_id: UUID
    role: ProjectRole
    contact_id: UUID

    model_config = ConfigDict(from_attributes=True)
