from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.domain.enums import ContactLabel
from app.infra.db.models import Contact, User
from app.infra.db.repositories import ContactRepository, UserRepository
from app.schemas.user import ContactRequest, CreateUserRequest
from app.services.authorization import UserPrincipal, ensure_self_or_admin
from app.services.errors import DuplicateContactError, DuplicateUserError, UserNotFoundError

logger = get_logger(__name__)


def _merge_labels(current: list[str], labels: tuple[ContactLabel, ...]) -> list[str]:
    return list(dict.fromkeys([*current, *(label.value for label in labels)]))


def build_contact(request: ContactRequest, extra_labels: tuple[ContactLabel, ...] = ()) -> Contact:
    return Contact(
        first_name=request.first_name.strip(),
        last_name=request.last_name.strip(),
        email=str(request.email).strip().lower(),
        phone=request.phone,
        labels=_merge_labels([], (*request.labels, *extra_labels)),
        unit_number=request.unit_number,
        street_number=request.street_number,
        street_name=request.street_name,
        city=request.city,
        state_or_province=request.state_or_province,
        postal_or_zip_code=request.postal_or_zip_code,
        country=request.country,
    )


class ContactService:
    def __init__(self, session: AsyncSession, contacts: ContactRepository | None = None) -> None:
        self.session = session
        self.contacts = contacts or ContactRepository(session)

    async def create(self, contact: Contact) -> Contact:
        """Persist a new contact; the caller owns the transaction."""
        if await self.contacts.exists_by_email(contact.email):
            raise DuplicateContactError(contact.email)
        return await self.contacts.create(contact)

    async def save(self, contact: Contact) -> Contact:
        """Return the stored contact with ``contact.email``, creating it when missing.

        An existing contact keeps its details and gains the labels of ``contact``.
        """
        existing = await self.contacts.get_by_email(contact.email)
        if existing is None:
            return await self.contacts.create(contact)
        existing.labels = list(dict.fromkeys([*existing.labels, *contact.labels]))
        return existing

    async def update(
        self,
        contact: Contact,
        request: ContactRequest,
        extra_labels: tuple[ContactLabel, ...] = (),
    ) -> Contact:
        email = str(request.email).strip().lower()
        if email != contact.email.lower():
            owner = await self.contacts.get_by_email(email)
            if owner is not None and owner.id != contact.id:
                raise DuplicateContactError(email)

        contact.first_name = request.first_name.strip()
        contact.last_name = request.last_name.strip()
        contact.email = email
        contact.phone = request.phone
        contact.unit_number = request.unit_number
        contact.street_number = request.street_number
        contact.street_name = request.street_name
        contact.city = request.city
        contact.state_or_province = request.state_or_province
        contact.postal_or_zip_code = request.postal_or_zip_code
        contact.country = request.country
        contact.labels = _merge_labels(contact.labels, (*request.labels, *extra_labels))
        return contact


class UserService:
    def __init__(
        self,
        session: AsyncSession,
        users: UserRepository | None = None,
        contacts: ContactService | None = None,
    ) -> None:
        self.session = session
        self.users = users or UserRepository(session)
        self.contacts = contacts or ContactService(session)

    async def create_user(
        self,
        username: str,
        email: str,
        contact: Contact,
        registered: bool,
    ) -> User:
        """Create a user and its contact inside the current transaction."""
        cleaned_username = username.strip()
        cleaned_email = email.strip().lower()
        if await self.users.exists_by_username(cleaned_username):
            raise DuplicateUserError("username", cleaned_username)
        if await self.users.exists_by_email(cleaned_email):
            raise DuplicateUserError("email", cleaned_email)

        saved_contact = await self.contacts.create(contact)
        return await self.users.create(
            username=cleaned_username,
            email=cleaned_email,
            contact=saved_contact,
            registered=registered,
        )

    async def create_party(self, request: CreateUserRequest, label: ContactLabel) -> User:
        """Create an unregistered builder or owner that a project can refer to."""
        user = await self.create_user(
            username=request.username,
            email=str(request.email),
            contact=build_contact(request.contact, extra_labels=(label,)),
            registered=False,
        )
        await self.session.commit()
        await self.session.refresh(user)
        logger.info("user_created", user_id=str(user.id), label=label.value, registered=False)
        return user

    async def get_by_id(self, user_id: UUID) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def get_by_username(self, principal: UserPrincipal, username: str) -> User:
        user = await self.users.get_by_username(username)
        if user is None:
            raise UserNotFoundError(username)
        ensure_self_or_admin(principal, user.id)
        return user
