from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]
DEFAULT_SECRET_KEY = "change-this-secret-key-in-production"


def _normalize_allowed_hosts(value: Any) -> list[str]:
    """Accept comma-separated string or list-like and normalize hosts."""
    if value is None or value == "":
        return []

    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",")]
    elif isinstance(value, (list, tuple, set)):
        parts = [str(part).strip() for part in value]
    else:
        return []

    return [part for part in parts if part]


class Settings(BaseSettings):
    """Application settings."""

    # Remote API backend
    BACKEND_BASE_URL: str = "http://localhost:3001"
    BACKEND_TIMEOUT_SECONDS: float = 15.0

    # Admin directory storage: remote API, local database or process memory
    ADMIN_DIRECTORY_BACKEND: Literal["remote", "database", "memory"] = "remote"
    DATABASE_URL: str = "sqlite+aiosqlite:///./adminpanel.db"

    # Application
    ENV: str = "development"
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    APP_NAME: str = "Admin Panel"
    DEBUG: bool = True
    ENABLE_CSRF: bool = True
    LOG_LEVEL: str = "INFO"
    ALLOWED_HOSTS: list[str] = Field(default_factory=lambda: DEFAULT_ALLOWED_HOSTS.copy())

    # Login
    LOGIN_RATE_LIMIT_MAX: int = 10
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = 10 * 60
    LOGIN_FLOW_MAX_AGE_SECONDS: int = 15 * 60

    # Pages
    AUDIT_TRAIL_DEFAULT_DAYS: int = 7
    USERS_PAGE_SIZE: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("ALLOWED_HOSTS", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, value: Any) -> list[str] | Any:
        """Support comma-separated ALLOWED_HOSTS from environment."""
        return _normalize_allowed_hosts(value)

    @field_validator("BACKEND_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


def _validate_security() -> None:
    """Fail fast when running production with insecure defaults."""
    env = settings.ENV.lower()
    if env != "production":
        return

    secret = settings.SECRET_KEY
    if not secret or secret == DEFAULT_SECRET_KEY or len(secret) < 32:
        raise ValueError("SECRET_KEY must be set to a strong value in production.")

    if not settings.ALLOWED_HOSTS or settings.ALLOWED_HOSTS == DEFAULT_ALLOWED_HOSTS:
        raise ValueError("ALLOWED_HOSTS must be configured explicitly in production.")

    if not settings.BACKEND_BASE_URL.startswith("https://"):
        raise ValueError("BACKEND_BASE_URL must use https in production.")

    if settings.ADMIN_DIRECTORY_BACKEND == "memory":
        raise ValueError("The in-memory admin directory is not durable; use 'remote' or 'database'.")


settings = Settings()


_validate_security()
