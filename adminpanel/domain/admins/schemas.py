"""Pydantic schemas for admin account operations."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class AdminBase(BaseModel):
    """Shared attributes for admin payloads."""

    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("email", "first_name", "last_name", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class AdminCreate(AdminBase):
    """Schema for creating an admin; the confirmation is checked before storage.

    Passwords are kept exactly as typed.
    """

    email: str
    first_name: str = ""
    last_name: str = ""
    password: str
    confirm_password: str


class AdminUpdate(AdminBase):
    """Partial update; only fields that were set are merged."""

    pass


class AdminOut(BaseModel):
    """Admin record as returned to callers. Never carries a password."""

    id: int
    email: str
    first_name: str = ""
    last_name: str = ""

    model_config = ConfigDict(from_attributes=True)


__all__ = ["AdminCreate", "AdminOut", "AdminUpdate"]
