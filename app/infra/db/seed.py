from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.logging import get_logger
from app.core.security import hash_password
from app.domain.enums import ContactLabel, Role
from app.infra.db.models import Contact, User, UserAuthentication

logger = get_logger(__name__)


async def seed_admin_user(session: AsyncSession, settings: Settings) -> bool:
    """Create the configured bootstrap admin when it does not exist yet.

    Returns ``True`` when an account was created. Nothing happens unless
    ``ADMIN_USERNAME``, ``ADMIN_PASSWORD`` and ``ADMIN_EMAIL`` are all set.
    """
    if not (settings.admin_username and settings.admin_password and settings.admin_email):
        return False

    username = settings.admin_username.strip()
    email = settings.admin_email.strip().lower()

    existing_auth = await session.execute(
        select(UserAuthentication.id).where(UserAuthentication.username == username)
    )
    if existing_auth.scalar_one_or_none() is not None:
        return False

    user = (
        await session.execute(select(User).where(User.username == username))
    ).scalar_one_or_none()
    if user is None:
        contact = (
            await session.execute(select(Contact).where(Contact.email == email))
        ).scalar_one_or_none()
        if contact is None:
            contact = Contact(
                first_name=username,
                last_name="Administrator",
                email=email,
                labels=[ContactLabel.ADMINISTRATOR.value],
            )
            session.add(contact)
            await session.flush()

        session.add(User(username=username, email=email, contact=contact, registered=True))
        await session.flush()

    session.add(
        UserAuthentication(
            username=username,
            password_hash=hash_password(settings.admin_password),
            role=Role.ADMIN,
            enabled=True,
        )
    )
    await session.flush()
    logger.info("bootstrap_admin_created", username=username)
    return True
