from dataclasses import dataclass
from uuid import UUID

from app.domain.enums import Role
from app.infra.db.models import Project
from app.services.errors import AccessDeniedError


@dataclass(frozen=True, slots=True)
class UserPrincipal:
    user_id: UUID | None
    username: str
    role: Role

    @property
    def authorities(self) -> frozenset[str]:
        return self.role.authorities

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def has_authority(self, authority: str) -> bool:
        return self.role.has_authority(authority)


def ensure_authority(principal: UserPrincipal, authority: str) -> None:
    if not principal.has_authority(authority):
        raise AccessDeniedError(f"Missing authority '{authority}'")


def ensure_self_or_admin(principal: UserPrincipal, user_id: UUID) -> None:
    if principal.is_admin:
        return
    if principal.user_id is None or principal.user_id != user_id:
        raise AccessDeniedError("You can only access your own resources")


def ensure_project_member(principal: UserPrincipal, project: Project) -> None:
    if principal.is_admin:
        return
    if principal.user_id is None or not project.is_member(principal.user_id):
        raise AccessDeniedError(f"You are not a member of project '{project.id}'")
