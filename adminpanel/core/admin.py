"""Dependencies wiring the admin directory to its configured storage."""
from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends, Request

from adminpanel.core.config import settings
from adminpanel.core.database import AsyncSessionLocal
from adminpanel.domain.admins.repository import (
    AdminRepository,
    InMemoryAdminRepository,
    RemoteAdminRepository,
    SqlAdminRepository,
)
from adminpanel.domain.admins.services import AdminDirectoryService
from adminpanel.services.gateway import BackendClient, get_backend_client


def get_memory_repository(request: Request) -> InMemoryAdminRepository:
    """Return the process-wide in-memory repository kept on the application state."""
    repository = getattr(request.app.state, "admin_repository", None)
    if repository is None:
        repository = InMemoryAdminRepository.seeded()
        request.app.state.admin_repository = repository
    return repository


async def get_admin_repository(
    request: Request,
    client: BackendClient = Depends(get_backend_client),
) -> AsyncIterator[AdminRepository]:
    """Yield the configured repository; only the database backend opens a session."""
    backend = settings.ADMIN_DIRECTORY_BACKEND
    if backend == "database":
        async with AsyncSessionLocal() as db:
            yield SqlAdminRepository(db)
        return
    if backend == "memory":
        yield get_memory_repository(request)
        return
    yield RemoteAdminRepository(client)


async def get_admin_directory(
    repository: AdminRepository = Depends(get_admin_repository),
) -> AdminDirectoryService:
    return AdminDirectoryService(repository)


__all__ = ["get_admin_directory", "get_admin_repository", "get_memory_repository"]
