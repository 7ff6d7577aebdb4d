"""Application configuration using pydantic-settings."""
from functools import lru_cache
from urllib.parse import urlparse

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Published placeholder; only acceptable while DEV_MODE is on
DEV_SESSION_SECRET = "dev-insecure-session-secret-change-me"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # Sessions - signed JWTs carried in a cookie or a Bearer header
    session_secret: str = Field(
        default=DEV_SESSION_SECRET,
        validation_alias="SESSION_SECRET",
    )
    session_cookie_name: str = Field(
        default="primer_session", validation_alias="SESSION_COOKIE_NAME",
    )
    session_ttl_minutes: int = Field(
        default=60 * 24 * 30, validation_alias="SESSION_TTL_MINUTES",
    )
    session_cookie_secure: bool = Field(
        default=False, validation_alias="SESSION_COOKIE_SECURE",
    )
    bcrypt_rounds: int = Field(default=12, validation_alias="BCRYPT_ROUNDS")

    # Development mode - bypasses auth for local development
    dev_mode: bool = Field(default=False, validation_alias="DEV_MODE")

    # All JSON endpoints are mounted under this prefix; other paths are treated as pages
    api_prefix: str = Field(default="/api", validation_alias="API_PREFIX")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # Field length limits
    max_name_length: int = Field(default=100, validation_alias="MAX_NAME_LENGTH")
    max_title_length: int = Field(default=500, validation_alias="MAX_TITLE_LENGTH")
    max_description_length: int = Field(
        default=2000, validation_alias="MAX_DESCRIPTION_LENGTH",
    )
    max_content_length: int = Field(
        default=100_000, validation_alias="MAX_CONTENT_LENGTH",
    )

    @model_validator(mode="after")
    def validate_dev_mode_security(self) -> "Settings":
        """
        Prevent DEV_MODE from being enabled with a production database.

        DEV_MODE completely bypasses authentication, so we must ensure it's only
        used with local development databases to prevent accidental production exposure.
        SQLite databases are always local.
        """
        if not self.dev_mode or self.is_sqlite:
            return self

        # Parse database URL to extract hostname
        try:
            parsed = urlparse(self.database_url)
            hostname = parsed.hostname or ""
        except ValueError:
            # If we can't parse the URL, block DEV_MODE (fail-safe)
            hostname = ""

        # Check if database is on localhost
        local_hosts = {"localhost", "127.0.0.1", "0.0.0.0", "::1"}
        if hostname.lower() not in local_hosts:
            raise ValueError(
                f"DEV_MODE cannot be enabled with a non-local database. "
                f"Database host '{hostname}' appears to be a production database. "
                f"DEV_MODE bypasses all authentication and must only be used locally.",
            )

        return self

    @model_validator(mode="after")
    def validate_session_secret(self) -> "Settings":
        """
        Require a real SESSION_SECRET whenever authentication is enforced.

        Session tokens are HS256-signed, so anyone who knows the secret can mint a
        session for any user.
        """
        if self.dev_mode:
            return self
        if not self.session_secret.strip() or self.session_secret == DEV_SESSION_SECRET:
            raise ValueError(
                "SESSION_SECRET must be set to a private value when DEV_MODE is disabled.",
            )
        return self

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite (used for local runs and tests)."""
        return self.database_url.startswith("sqlite")

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
