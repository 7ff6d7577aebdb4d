"""Pydantic schemas for registration, login and the current user."""
from uuid import UUID

from pydantic import field_validator

from schemas.base import CamelModel, CamelORMModel
from schemas.validators import validate_required_text


class RegisterRequest(CamelModel):
    """Schema for account registration."""

    email: str
    password: str
    name: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Require an email and store it trimmed and lowercased."""
        validate_required_text(v, "Email")
        normalized = v.strip().lower()
        if "@" not in normalized:
            raise ValueError("Email must be a valid email address")
        return normalized

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        """Require a non-blank password."""
        return validate_required_text(v, "Password")


class LoginRequest(CamelModel):
    """Schema for credential login."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Match the normalization applied at registration."""
        return v.strip().lower()


class RegisterResponse(CamelORMModel):
    """Response for a newly registered account."""

    id: UUID
    email: str


class UserResponse(CamelORMModel):
    """Response model for user info."""

    id: UUID
    email: str
    name: str | None


class SessionResponse(CamelModel):
    """Response for a successful login; the token is also set as a cookie."""

    user: UserResponse
    access_token: str
    token_type: str = "bearer"
