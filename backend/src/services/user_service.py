"""Service layer for account registration and credential login."""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import hash_password, verify_password
from models.user import User
from schemas.user import RegisterRequest
from services.exceptions import ConflictError

logger = logging.getLogger(__name__)


def mask_email(email: str) -> str:
    """Reduce an email to its first character and domain for logging (a***@example.com)."""
    local, _, domain = email.strip().partition("@")
    if not domain:
        return "***"
    return f"{local[:1]}***@{domain.lower()}"


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Get a user by (normalized) email."""
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, data: RegisterRequest) -> User:
    """
    Create an account with a bcrypt-hashed password.

    Raises:
        ConflictError: If the email is already registered.
    """
    if await get_user_by_email(db, data.email) is not None:
        raise ConflictError("Email already registered")

    user = User(
        email=data.email,
        name=data.name or None,
        password_hash=hash_password(data.password),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """
    Check credentials.

    Returns:
        The user if the email exists and the password matches, None otherwise.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        logger.warning("Failed login attempt for unknown account %s", mask_email(email))
        return None
    if not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for user %s", user.id)
        return None
    return user
