"""Audit trail records as returned by the API backend."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

SUCCESS_STATUSES = {"success", "succeeded", "ok"}


class AuditLogEntry(BaseModel):
    """One change-log row. Read-only; produced by the backend."""

    audit_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("audit_id", "auditId", "id"))
    changed_at: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("changedAt", "changed_at", "timestamp")
    )
    changed_by: Optional[str] = Field(default=None, validation_alias=AliasChoices("changed_by", "changedBy", "actorId"))
    user_email: Optional[str] = Field(default=None, validation_alias=AliasChoices("user_email", "userEmail", "actorEmail"))
    action: Optional[str] = None
    status: Optional[str] = None
    ip_address: Optional[str] = Field(default=None, validation_alias=AliasChoices("ip_address", "ipAddress"))
    user_agent: Optional[str] = Field(default=None, validation_alias=AliasChoices("user_agent", "userAgent"))
    table_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("table_name", "tableName", "table"))
    field_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("field_name", "fieldName", "field"))
    old_value: Optional[Any] = Field(default=None, validation_alias=AliasChoices("old_value", "oldValue"))
    new_value: Optional[Any] = Field(default=None, validation_alias=AliasChoices("new_value", "newValue"))
    request_body: Optional[Any] = Field(default=None, validation_alias=AliasChoices("request_body", "requestBody"))

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("audit_id", "changed_by", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        return None if value is None else str(value)

    @property
    def actor(self) -> str:
        return self.user_email or self.changed_by or ""

    @property
    def is_success(self) -> bool:
        return (self.status or "").strip().lower() in SUCCESS_STATUSES


__all__ = ["AuditLogEntry"]
