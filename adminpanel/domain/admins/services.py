"""Admin account management on top of an injected repository."""
from __future__ import annotations

import logging
from typing import Any, Optional

from adminpanel.core.errors import ValidationError
from adminpanel.core.logging_config import SECURITY_LOGGER_NAME, anonymise
from adminpanel.domain.admins.repository import AdminRepository
from adminpanel.domain.admins.schemas import AdminCreate, AdminOut, AdminUpdate

security_logger = logging.getLogger(SECURITY_LOGGER_NAME)


class AdminDirectoryService:
    """Create, update, delete and search dashboard administrators."""

    def __init__(self, repository: AdminRepository) -> None:
        self.repository = repository

    async def list(self) -> list[AdminOut]:
        return await self.repository.list()

    async def get(self, admin_id: int) -> Optional[AdminOut]:
        for admin in await self.repository.list():
            if admin.id == admin_id:
                return admin
        return None

    async def create(self, record: AdminCreate) -> AdminOut:
        """Add an admin. Raises ``ValidationError`` before storage on bad input."""
        if not record.email:
            raise ValidationError("Email is required.")
        if not record.password:
            raise ValidationError("Password is required.")
        if record.password != record.confirm_password:
            raise ValidationError("Passwords do not match.")

        admin = await self.repository.add(record.email, record.first_name, record.last_name, record.password)
        security_logger.info("Admin account created [admin_id=%s, email_hash=%s]", admin.id, anonymise(admin.email))
        return admin

    async def update(self, admin_id: int, partial: AdminUpdate | dict[str, Any]) -> Optional[AdminOut]:
        """Merge the provided fields. Returns ``None`` when the id is unknown."""
        if isinstance(partial, AdminUpdate):
            changes = partial.model_dump(exclude_unset=True)
        else:
            changes = AdminUpdate(**partial).model_dump(exclude_unset=True)

        if "email" in changes and not changes["email"]:
            raise ValidationError("Email cannot be empty.")
        for name_field in ("first_name", "last_name"):
            if name_field in changes and changes[name_field] is None:
                changes[name_field] = ""

        admin = await self.repository.update(admin_id, changes)
        if admin is not None:
            security_logger.info("Admin account updated [admin_id=%s]", admin_id)
        return admin

    async def delete(self, admin_id: int) -> None:
        await self.repository.delete(admin_id)
        security_logger.info("Admin account deleted [admin_id=%s]", admin_id)

    async def search(self, query: str) -> list[AdminOut]:
        return await self.repository.search((query or "").strip())


__all__ = ["AdminDirectoryService"]
