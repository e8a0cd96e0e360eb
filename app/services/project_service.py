from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.date_filter import DateFilter
from app.core.logging import get_logger
from app.core.pagination import Page, PageRequest
from app.domain.enums import ContactLabel, ProjectRole, ProjectScope
from app.infra.db.models import Project, ProjectLocation, ProjectParticipant
from app.infra.db.repositories import (
    ProjectParticipantRepository,
    ProjectRepository,
    UserRepository,
)
from app.schemas.project import CreateProjectRequest, ProjectParticipantRequest
from app.services.authorization import (
    UserPrincipal,
    ensure_project_member,
    ensure_self_or_admin,
)
from app.services.errors import (
    InvalidProjectRoleError,
    ParticipantNotFoundError,
    ProjectNotFoundError,
    ResourceMismatchError,
    UserNotFoundError,
)
from app.services.user_service import ContactService, build_contact

logger = get_logger(__name__)


def parse_project_role(raw: str) -> ProjectRole:
    try:
        return ProjectRole(raw.strip().upper())
    except ValueError as exc:
        raise InvalidProjectRoleError(raw) from exc


class ProjectService:
    def __init__(
        self,
        session: AsyncSession,
        projects: ProjectRepository | None = None,
        users: UserRepository | None = None,
    ) -> None:
        self.session = session
        self.projects = projects or ProjectRepository(session)
        self.users = users or UserRepository(session)

    async def create_project(
        self, principal: UserPrincipal, request: CreateProjectRequest
    ) -> Project:
        ensure_self_or_admin(principal, request.user_id)
        if not await self.users.exists_by_id(request.user_id):
            raise UserNotFoundError(request.user_id)

        project = Project(
            builder_id=request.user_id if request.is_builder else None,
            owner_id=None if request.is_builder else request.user_id,
            location=ProjectLocation(**request.location.model_dump()),
            participants=[],
            estimates=[],
        )
        await self.projects.create(project)
        await self.session.commit()
        await self.session.refresh(project)

        logger.info(
            "project_created",
            project_id=str(project.id),
            user_id=str(request.user_id),
            as_builder=request.is_builder,
        )
        return project

    async def get_project(self, principal: UserPrincipal, project_id: UUID) -> Project:
        project = await self.get_project_or_raise(project_id)
        ensure_project_member(principal, project)
        return project

    async def get_project_or_raise(self, project_id: UUID) -> Project:
        project = await self.projects.get_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def list_projects(
        self,
        principal: UserPrincipal,
        user_id: UUID,
        scope: ProjectScope,
        page_request: PageRequest,
        date_filter: DateFilter | None = None,
    ) -> Page[Project]:
        ensure_self_or_admin(principal, user_id)
        return await self.projects.list_for_user(
            user_id=user_id,
            scope=scope,
            page_request=page_request,
            date_filter=date_filter,
        )


class ParticipantService:
    def __init__(
        self,
        session: AsyncSession,
        participants: ProjectParticipantRepository | None = None,
        projects: ProjectService | None = None,
        contacts: ContactService | None = None,
    ) -> None:
        self.session = session
        self.participants = participants or ProjectParticipantRepository(session)
        self.projects = projects or ProjectService(session)
        self.contacts = contacts or ContactService(session)

    async def list_participants(
        self, principal: UserPrincipal, project_id: UUID, page_request: PageRequest
    ) -> Page[ProjectParticipant]:
        await self.projects.get_project(principal, project_id)
        return await self.participants.list_by_project(project_id, page_request)

    async def get_participant(
        self, principal: UserPrincipal, project_id: UUID, participant_id: UUID
    ) -> ProjectParticipant:
        await self.projects.get_project(principal, project_id)
        return await self._get_participant_in_project(project_id, participant_id)

    async def create_participant(
        self,
        principal: UserPrincipal,
        project_id: UUID,
        request: ProjectParticipantRequest,
    ) -> ProjectParticipant:
        await self.projects.get_project(principal, project_id)
        role = parse_project_role(request.role)
        contact = await self.contacts.save(
            build_contact(request.contact, extra_labels=(ContactLabel(role.value),))
        )

        participant = await self.participants.create(
            ProjectParticipant(project_id=project_id, role=role, contact=contact)
        )
        await self.session.commit()
        await self.session.refresh(participant)

        logger.info(
            "participant_created",
            participant_id=str(participant.id),
            project_id=str(project_id),
            role=role.value,
        )
        return participant

    async def update_participant(
        self,
        principal: UserPrincipal,
        project_id: UUID,
        participant_id: UUID,
        request: ProjectParticipantRequest,
    ) -> ProjectParticipant:
        await self.projects.get_project(principal, project_id)
        participant = await self._get_participant_in_project(project_id, participant_id)
        role = parse_project_role(request.role)
        await self.contacts.update(
            participant.contact, request.contact, extra_labels=(ContactLabel(role.value),)
        )

        participant.role = role
        await self.session.commit()
        await self.session.refresh(participant)

        logger.info("participant_updated", participant_id=str(participant_id), role=role.value)
        return participant

    async def delete_participant(
        self, principal: UserPrincipal, project_id: UUID, participant_id: UUID
    ) -> None:
        await self.projects.get_project(principal, project_id)
        participant = await self._get_participant_in_project(project_id, participant_id)
        await self.participants.delete(participant)
        await self.session.commit()
        logger.info("participant_deleted", participant_id=str(participant_id))

    async def _get_participant_in_project(
        self, project_id: UUID, participant_id: UUID
    ) -> ProjectParticipant:
        participant = await self.participants.get_by_id(participant_id)
        if participant is None:
            raise ParticipantNotFoundError(participant_id)
        if participant.project_id != project_id:
            raise ResourceMismatchError("Participant", participant_id, "project", project_id)
        return participant
