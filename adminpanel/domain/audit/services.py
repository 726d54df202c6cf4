"""Audit trail lookups for a date range."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import ValidationError as SchemaError

from adminpanel.core.errors import DashboardError, SessionExpiredError, ValidationError
from adminpanel.domain.audit.schemas import AuditLogEntry
from adminpanel.services import backend_api
from adminpanel.services.gateway import BackendClient

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class AuditTrailResult:
    entries: list[AuditLogEntry] = field(default_factory=list)
    error: Optional[str] = None


def parse_day(value: date | str | None, label: str) -> date:
    """Turn a form value into a date, raising ``ValidationError`` when missing or malformed."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = (value or "").strip()
    if not raw:
        raise ValidationError("Please select both a start and end date.")
    try:
        return datetime.strptime(raw, DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"The {label} date must use the YYYY-MM-DD format.") from None


def default_range(days: int, today: date | None = None) -> tuple[date, date]:
    today = today or date.today()
    return today - timedelta(days=days), today


def _sort_key(entry: AuditLogEntry) -> datetime:
    stamp = entry.changed_at
    if stamp is None:
        return _OLDEST
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp


def sort_newest_first(entries: list[AuditLogEntry]) -> list[AuditLogEntry]:
    return sorted(entries, key=_sort_key, reverse=True)


def shorten_id(value: Any) -> str:
    """Keep the last five characters of long identifiers for display."""
    if not isinstance(value, str) or len(value) <= 5:
        return "" if value is None else str(value)
    return value[-5:]


class AuditTrailQuery:
    """Fetch change-log records from the backend for an inclusive date range."""

    def __init__(self, client: BackendClient) -> None:
        self.client = client

    async def fetch(
        self,
        start_date: date | str | None,
        end_date: date | str | None,
        search: str | None = None,
    ) -> AuditTrailResult:
        start = parse_day(start_date, "start")
        end = parse_day(end_date, "end")

        if start > end:
            return AuditTrailResult(error="The start date must be on or before the end date.")

        try:
            data = await backend_api.get_audit_trail(
                self.client,
                start.strftime(DATE_FORMAT),
                end.strftime(DATE_FORMAT),
                (search or "").strip() or None,
            )
        except SessionExpiredError:
            raise
        except DashboardError as exc:
            logger.warning("Audit trail lookup failed: %s", exc.message)
            return AuditTrailResult(error=exc.message or "Could not load logs.")

        if isinstance(data, dict):
            rows = data.get("logs") or data.get("data") or []
        elif isinstance(data, list):
            rows = data
        else:
            rows = []

        entries = []
        for row in rows:
            try:
                entries.append(AuditLogEntry.model_validate(row))
            except SchemaError:
                logger.warning("Skipping malformed audit row: %r", row)

        return AuditTrailResult(entries=sort_newest_first(entries))


__all__ = [
    "AuditTrailQuery",
    "AuditTrailResult",
    "default_range",
    "parse_day",
    "shorten_id",
    "sort_newest_first",
]
