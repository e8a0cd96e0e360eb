from dataclasses import dataclass
from typing import NoReturn

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.logging import get_logger
from app.core.security import AccessToken, create_access_token, hash_password, verify_password
from app.domain.enums import ContactLabel, Role
from app.infra.db.models import User, UserAuthentication, utcnow
from app.infra.db.repositories import UserAuthenticationRepository, UserRepository
from app.schemas.auth import SignUpRequest
from app.services.audit_service import SecurityAuditService
from app.services.authorization import UserPrincipal
from app.services.errors import (
    AuthenticationError,
    DuplicateUserError,
    UserAuthenticationNotFoundError,
)
from app.services.user_service import UserService, build_contact

logger = get_logger(__name__)


@dataclass(slots=True)
class LoginResult:
    token: AccessToken
    user_auth: UserAuthentication


class AuthService:
    def __init__(
        self,
        session: AsyncSession,
        audit: SecurityAuditService | None = None,
        users: UserRepository | None = None,
        user_auths: UserAuthenticationRepository | None = None,
        user_service: UserService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.audit = audit or SecurityAuditService()
        self.users = users or UserRepository(session)
        self.user_auths = user_auths or UserAuthenticationRepository(session)
        self.user_service = user_service or UserService(session, users=self.users)
        self.settings = settings or get_settings()

    async def register_user(self, request: SignUpRequest, client_ip: str | None = None) -> User:
        return await self._register_with_role(request, Role.USER, client_ip)

    async def create_admin_user(
        self, request: SignUpRequest, created_by: str, client_ip: str | None = None
    ) -> User:
        user = await self._register_with_role(request, Role.ADMIN, client_ip)
        self.audit.log_security_event(
            "ADMIN_USER_CREATED",
            "Admin user created",
            client_ip=client_ip,
            username=created_by,
            new_admin_user=user.username,
        )
        return user

    async def _register_with_role(
        self, request: SignUpRequest, role: Role, client_ip: str | None
    ) -> User:
        username = request.username.strip()
        email = str(request.contact.email).strip().lower()

        if await self.user_auths.exists_by_username(username) or await self.users.exists_by_username(
            username
        ):
            self.audit.log_registration_attempt(
                username, email, client_ip, success=False, failure_reason="Username already taken"
            )
            raise DuplicateUserError("username", username)
        if await self.users.exists_by_email(email):
            self.audit.log_registration_attempt(
                username, email, client_ip, success=False, failure_reason="Email already in use"
            )
            raise DuplicateUserError("email", email)

        label = ContactLabel.ADMINISTRATOR if role == Role.ADMIN else None
        user = await self.user_service.create_user(
            username=username,
            email=email,
            contact=build_contact(request.contact, extra_labels=(label,) if label else ()),
            registered=True,
        )
        await self.user_auths.create(
            UserAuthentication(
                username=username,
                password_hash=hash_password(request.password),
                role=role,
                enabled=True,
            )
        )
        await self.session.commit()
        await self.session.refresh(user)

        logger.info("user_registered", user_id=str(user.id), role=role.value)
        self.audit.log_registration_attempt(
            username, email, client_ip, success=True, failure_reason=None
        )
        return user

    async def login(
        self, username_or_email: str, password: str, client_ip: str | None = None
    ) -> LoginResult:
        identifier = username_or_email.strip()
        user_auth = await self._find_user_auth(identifier)

        if user_auth is None:
            self._reject_login(identifier, client_ip, "Unknown user")
        if not user_auth.enabled:
            self._reject_login(identifier, client_ip, "Account disabled")
        if not verify_password(password, user_auth.password_hash):
            self._reject_login(identifier, client_ip, "Bad credentials")

        user_auth.last_login = utcnow()
        await self.session.commit()

        token = self._issue_token(user_auth.username, user_auth.role)
        self.audit.log_login_attempt(identifier, client_ip, success=True)
        self.audit.log_token_generation(user_auth.username, client_ip)
        return LoginResult(token=token, user_auth=user_auth)

    def refresh(self, principal: UserPrincipal, client_ip: str | None = None) -> AccessToken:
        token = self._issue_token(principal.username, principal.role)
        self.audit.log_token_generation(principal.username, client_ip)
        return token

    async def find_user_auth_by_username(
        self, username: str, requested_by: str, client_ip: str | None = None
    ) -> UserAuthentication:
        user_auth = await self.user_auths.get_by_username(username)
        if user_auth is None:
            raise UserAuthenticationNotFoundError(username)
        self.audit.log_security_event(
            "USER_AUTH_RETRIEVED",
            "User authentication retrieved",
            client_ip=client_ip,
            username=requested_by,
            target_user=username,
        )
        return user_auth

    async def list_user_auths(
        self, requested_by: str, client_ip: str | None = None
    ) -> list[UserAuthentication]:
        user_auths = await self.user_auths.list_all()
        self.audit.log_security_event(
            "ALL_USER_AUTH_RETRIEVED",
            "All user authentications retrieved",
            client_ip=client_ip,
            username=requested_by,
            count=len(user_auths),
        )
        return user_auths

    async def _find_user_auth(self, identifier: str) -> UserAuthentication | None:
        if not identifier:
            return None
        user_auth = await self.user_auths.get_by_username(identifier)
        if user_auth is not None or "@" not in identifier:
            return user_auth

        user = await self.users.get_by_email(identifier)
        if user is None:
            return None
        return await self.user_auths.get_by_username(user.username)

    def _reject_login(self, identifier: str, client_ip: str | None, reason: str) -> NoReturn:
        self.audit.log_login_attempt(identifier, client_ip, success=False, failure_reason=reason)
        raise AuthenticationError()

    def _issue_token(self, username: str, role: Role) -> AccessToken:
        return create_access_token(
            subject=username,
            role=role.value,
            secret=self.settings.jwt_secret,
            ttl_minutes=self.settings.jwt_ttl_minutes,
            algorithm=self.settings.jwt_algorithm,
        )

