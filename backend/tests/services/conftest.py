"""Shared fixtures for service layer tests."""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import User


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user."""
    user = User(email="service@example.com", password_hash="!")
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    """Create another test user for isolation tests."""
    user = User(email="other@example.com", password_hash="!")
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user
