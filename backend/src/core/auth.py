"""Authentication: password hashing, signed session tokens and the current-user dependency."""
import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

import bcrypt
import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from db.session import get_async_session
from models.user import User

logger = logging.getLogger(__name__)


# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)

SESSION_TOKEN_ALGORITHM = "HS256"

DEV_USER_EMAIL = "dev@localhost"
# Not a valid bcrypt hash, so password login as the dev user always fails
DEV_USER_PASSWORD_HASH = "!"


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a password with bcrypt (BCRYPT_ROUNDS rounds by default)."""
    salt = bcrypt.gensalt(rounds=rounds or get_settings().bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_session_token(user_id: UUID, settings: Settings) -> str:
    """Create a signed session token whose subject is the user id."""
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=settings.session_ttl_minutes),
    }
    return jwt.encode(payload, settings.session_secret, algorithm=SESSION_TOKEN_ALGORITHM)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_session_token(token: str, settings: Settings) -> UUID:
    """
    Decode and validate a session token.

    Returns:
        The user id from the sub claim.

    Raises:
        HTTPException: If token is invalid, expired, or has no usable sub claim.
    """
    try:
        payload = jwt.decode(
            token,
            settings.session_secret,
            algorithms=[SESSION_TOKEN_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Session has expired")
    except jwt.PyJWTError as e:
        logger.warning("Session token validation failed: %s", e)
        raise _unauthorized("Invalid session")

    try:
        return UUID(payload["sub"])
    except (TypeError, ValueError):
        raise _unauthorized("Invalid session")


async def get_or_create_dev_user(db: AsyncSession) -> User:
    """Get or create a development user for DEV_MODE."""
    result = await db.execute(select(User).where(User.email == DEV_USER_EMAIL))
    user = result.scalar_one_or_none()
    if user is None:
        user = User(
            email=DEV_USER_EMAIL,
            name="Development User",
            password_hash=DEV_USER_PASSWORD_HASH,
        )
        db.add(user)
        await db.flush()
    return user


def get_request_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
    settings: Settings,
) -> str | None:
    """Session token from the Authorization header, falling back to the session cookie."""
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


async def _authenticate_user(
    token: str | None,
    db: AsyncSession,
    settings: Settings,
) -> User:
    """
    Internal: resolve the user for a request.

    A presented token is always validated. Without one, DEV_MODE falls back to
    the local development user; otherwise the request is rejected.
    """
    if token is None:
        if settings.dev_mode:
            return await get_or_create_dev_user(db)
        raise _unauthorized("Not authenticated")

    user_id = decode_session_token(token, settings)
    user = await db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")
    return user


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> User:
    """Dependency that validates the session (Bearer header or cookie) and returns the user."""
    token = get_request_token(request, credentials, settings)
    return await _authenticate_user(token, db, settings)
