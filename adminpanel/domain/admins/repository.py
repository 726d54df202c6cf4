"""Storage backends for the admin directory."""
from __future__ import annotations

import asyncio
import logging
import secrets
from abc import ABC, abstractmethod
from typing import Any, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import generate_password_hash

from adminpanel.core.errors import DashboardError, RequestError, ValidationError
from adminpanel.domain.admins.models import AdminAccount
from adminpanel.domain.admins.schemas import AdminOut
from adminpanel.services import backend_api
from adminpanel.services.gateway import BackendClient

EDITABLE_FIELDS = ("email", "first_name", "last_name")

logger = logging.getLogger(__name__)


def _matches(admin: AdminOut, query: str) -> bool:
    needle = query.lower()
    return any(needle in (value or "").lower() for value in (admin.email, admin.first_name, admin.last_name))


class AdminRepository(ABC):
    """Persistence contract used by ``AdminDirectoryService``."""

    @abstractmethod
    async def list(self) -> list[AdminOut]:
        ...

    @abstractmethod
    async def add(self, email: str, first_name: str, last_name: str, password: str) -> AdminOut:
        ...

    @abstractmethod
    async def update(self, admin_id: int, changes: dict[str, Any]) -> Optional[AdminOut]:
        ...

    @abstractmethod
    async def delete(self, admin_id: int) -> None:
        ...

    async def search(self, query: str) -> list[AdminOut]:
        admins = await self.list()
        if not query:
            return admins
        return [admin for admin in admins if _matches(admin, query)]


class InMemoryAdminRepository(AdminRepository):
    """Process-lifetime store. Not durable; meant for development and tests."""

    def __init__(self, records: list[dict[str, Any]] | None = None) -> None:
        self._records: list[dict[str, Any]] = [dict(record) for record in records or []]
        self._lock = asyncio.Lock()

    @classmethod
    def seeded(cls) -> "InMemoryAdminRepository":
        return cls([
            {
                "id": 1,
                "email": "admin@example.com",
                "first_name": "Jane",
                "last_name": "Doe",
                "password_hash": generate_password_hash(secrets.token_urlsafe(16)),
            }
        ])

    @staticmethod
    def _out(record: dict[str, Any]) -> AdminOut:
        return AdminOut(
            id=record["id"],
            email=record["email"],
            first_name=record.get("first_name") or "",
            last_name=record.get("last_name") or "",
        )

    def __len__(self) -> int:
        return len(self._records)

    def password_hash_for(self, admin_id: int) -> Optional[str]:
        for record in self._records:
            if record["id"] == admin_id:
                return record["password_hash"]
        return None

    async def list(self) -> list[AdminOut]:
        return [self._out(record) for record in self._records]

    async def add(self, email: str, first_name: str, last_name: str, password: str) -> AdminOut:
        async with self._lock:
            next_id = max((record["id"] for record in self._records), default=0) + 1
            record = {
                "id": next_id,
                "email": email,
                "first_name": first_name,
                "last_name": last_name,
                "password_hash": generate_password_hash(password),
            }
            self._records.append(record)
            return self._out(record)

    async def update(self, admin_id: int, changes: dict[str, Any]) -> Optional[AdminOut]:
        async with self._lock:
            for record in self._records:
                if record["id"] == admin_id:
                    record.update({key: value for key, value in changes.items() if key in EDITABLE_FIELDS})
                    return self._out(record)
        return None

    async def delete(self, admin_id: int) -> None:
        async with self._lock:
            self._records = [record for record in self._records if record["id"] != admin_id]


class SqlAdminRepository(AdminRepository):
    """Admin accounts kept in the local ``admin_accounts`` table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list(self) -> list[AdminOut]:
        result = await self.db.execute(select(AdminAccount).order_by(AdminAccount.id))
        return [AdminOut.model_validate(row) for row in result.scalars().all()]

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValidationError("An admin with this email already exists.") from None

    async def add(self, email: str, first_name: str, last_name: str, password: str) -> AdminOut:
        current_max = (await self.db.execute(select(func.max(AdminAccount.id)))).scalar()
        account = AdminAccount(
            id=(current_max or 0) + 1,
            email=email,
            first_name=first_name,
            last_name=last_name,
            password_hash=generate_password_hash(password),
        )
        self.db.add(account)
        await self._commit()
        await self.db.refresh(account)
        return AdminOut.model_validate(account)

    async def update(self, admin_id: int, changes: dict[str, Any]) -> Optional[AdminOut]:
        account = await self.db.get(AdminAccount, admin_id)
        if account is None:
            return None
        for field, value in changes.items():
            if field in EDITABLE_FIELDS:
                setattr(account, field, value)
        await self._commit()
        await self.db.refresh(account)
        return AdminOut.model_validate(account)

    async def delete(self, admin_id: int) -> None:
        await self.db.execute(delete(AdminAccount).where(AdminAccount.id == admin_id))
        await self.db.commit()

    async def search(self, query: str) -> list[AdminOut]:
        if not query:
            return await self.list()
        needle = query.lower()
        result = await self.db.execute(
            select(AdminAccount)
            .where(
                or_(
                    func.lower(AdminAccount.email).contains(needle, autoescape=True),
                    func.lower(AdminAccount.first_name).contains(needle, autoescape=True),
                    func.lower(AdminAccount.last_name).contains(needle, autoescape=True),
                )
            )
            .order_by(AdminAccount.id)
        )
        return [AdminOut.model_validate(row) for row in result.scalars().all()]


class RemoteAdminRepository(AdminRepository):
    """Admin accounts served by the API backend as users of type ``admin``."""

    page_size = 100
    account_type = "Admin"

    def __init__(self, client: BackendClient) -> None:
        self.client = client

    @staticmethod
    def _user_id(user: dict[str, Any]) -> Optional[int]:
        """Return the record's id as a positive integer, or ``None`` when it is not one."""
        raw = user.get("user_id")
        if raw is None:
            raw = user.get("id")
        if isinstance(raw, bool):
            return None
        if isinstance(raw, int):
            return raw if raw > 0 else None
        if isinstance(raw, str) and raw.strip().isdigit():
            value = int(raw.strip())
            return value if value > 0 else None
        return None

    @classmethod
    def _to_admin(cls, user: dict[str, Any]) -> Optional[AdminOut]:
        admin_id = cls._user_id(user)
        if admin_id is None:
            logger.warning("Skipping backend admin record without a numeric id: %r", user.get("user_id", user.get("id")))
            return None
        return AdminOut(
            id=admin_id,
            email=user.get("email") or "",
            first_name=user.get("firstName") or user.get("first_name") or "",
            last_name=user.get("lastName") or user.get("last_name") or "",
        )

    @staticmethod
    def _is_admin(user: Any) -> bool:
        if not isinstance(user, dict):
            return False
        kind = user.get("userType") or user.get("accountType") or user.get("account_type") or ""
        return str(kind).lower() == "admin"

    async def list(self) -> list[AdminOut]:
        """Walk the backend's user pages, keeping admins.

        Stops on a short or empty page, at ``totalPages`` when the backend
        reports it, or when a page repeats the previous one.
        """
        admins: list[AdminOut] = []
        page = 1
        previous: list[Any] | None = None
        while True:
            data = await backend_api.list_users(self.client, page, self.page_size)
            batch = backend_api.unwrap_list(data, "users", "data")
            if not batch or batch == previous:
                return admins

            for user in batch:
                if self._is_admin(user):
                    admin = self._to_admin(user)
                    if admin is not None:
                        admins.append(admin)

            total_pages = data.get("totalPages") if isinstance(data, dict) else None
            if len(batch) < self.page_size or (isinstance(total_pages, int) and page >= total_pages):
                return admins
            previous = batch
            page += 1

    async def add(self, email: str, first_name: str, last_name: str, password: str) -> AdminOut:
        data = await backend_api.create_user(
            self.client,
            email,
            password,
            self.account_type,
            firstName=first_name,
            lastName=last_name,
        )
        created = data.get("user", data) if isinstance(data, dict) else None
        if isinstance(created, dict) and self._user_id(created) is not None:
            return self._to_admin({"email": email, "firstName": first_name, "lastName": last_name, **created})

        for admin in await self.list():
            if admin.email.lower() == email.lower():
                return admin
        raise DashboardError("The admin was created but could not be loaded back.")

    async def update(self, admin_id: int, changes: dict[str, Any]) -> Optional[AdminOut]:
        payload = {}
        if "email" in changes:
            payload["email"] = changes["email"]
        if "first_name" in changes:
            payload["firstName"] = changes["first_name"]
        if "last_name" in changes:
            payload["lastName"] = changes["last_name"]

        try:
            await backend_api.update_user(self.client, admin_id, payload)
            user = await backend_api.get_user(self.client, admin_id)
        except RequestError as exc:
            if exc.status_code == 404:
                return None
            raise

        if isinstance(user, dict):
            user = user.get("user", user)
        return self._to_admin(user) if isinstance(user, dict) else None

    async def delete(self, admin_id: int) -> None:
        try:
            await backend_api.delete_user(self.client, admin_id)
        except RequestError as exc:
            if exc.status_code != 404:
                raise


__all__ = [
    "AdminRepository",
    "InMemoryAdminRepository",
    "RemoteAdminRepository",
    "SqlAdminRepository",
]
