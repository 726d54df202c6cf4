import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from adminpanel.core.config import settings
from adminpanel.core.database import get_db

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", summary="Health check")
async def health(db: AsyncSession = Depends(get_db)) -> dict[str, str]:
    """Liveness probe; touches the database only when it backs the admin directory."""
    payload = {"status": "ok", "admin_directory": settings.ADMIN_DIRECTORY_BACKEND}
    if settings.ADMIN_DIRECTORY_BACKEND != "database":
        return payload

    try:
        await db.execute(text("SELECT 1"))
        payload["database"] = "ok"
    except Exception as exc:  # noqa: BLE001
        payload["database"] = "error"
        logger.exception("Database healthcheck failed", exc_info=exc)
    return payload
