"""Shared fixtures and helpers for API tests."""
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from api.main import app
from core.auth import create_session_token, hash_password
from core.config import Settings, get_settings
from db.session import get_async_session
from models.user import User

API = "/api"


async def create_user(
    db_session: AsyncSession,
    email: str,
    password: str = "correct horse battery staple",
    name: str | None = None,
) -> User:
    """Insert a user with a real bcrypt hash."""
    user = User(email=email, name=name, password_hash=hash_password(password))
    db_session.add(user)
    await db_session.flush()
    return user


@asynccontextmanager
async def create_user2_client(
    db_session: AsyncSession,
    email: str = "user2@example.com",
) -> AsyncGenerator[AsyncClient]:
    """
    Create an authenticated AsyncClient for a second user via a Bearer session token.

    Yields an AsyncClient authenticated as that user. A presented token takes
    precedence over the DEV_MODE fallback user, so the primary `client` fixture
    keeps acting as the dev user. Cleans up dependency overrides on exit.
    """
    user2 = await create_user(db_session, email)
    token = create_session_token(user2.id, get_settings())

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            headers={"Authorization": f"Bearer {token}"},
        ) as user2_client:
            yield user2_client
    finally:
        app.dependency_overrides.pop(get_async_session, None)
        # The primary client fixture may still be active and needs its override back
        app.dependency_overrides[get_async_session] = override_get_async_session


def disable_dev_mode() -> None:
    """Make authentication mandatory for the rest of the test."""

    def override_get_settings() -> Settings:
        return Settings(_env_file=None, database_url="sqlite+aiosqlite://", DEV_MODE=False)

    app.dependency_overrides[get_settings] = override_get_settings


async def create_prompt(
    client: AsyncClient,
    title: str = "Refactor",
    content: str = "Do X",
    **extra: Any,
) -> dict:
    """Create a prompt and return the response data."""
    payload: dict[str, Any] = {"title": title, "content": content, **extra}
    response = await client.post(f"{API}/prompts", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def create_category(client: AsyncClient, name: str = "Coding", **extra: Any) -> dict:
    """Create a category and return the response data."""
    response = await client.post(f"{API}/categories", json={"name": name, **extra})
    assert response.status_code == 201, response.text
    return response.json()


# Constant for non-existent entity ID
FAKE_UUID = "00000000-0000-0000-0000-000000000000"
