"""Audit trail schemas."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from backoffice.models.audit import AuditActionType


class AuditRecordRead(BaseModel):
    id: int
    user_id: int | None
    user_name: str | None
    action_type: AuditActionType
    table_name: str
    record_id: str | None
    old_data: dict[str, Any] | None
    new_data: dict[str, Any] | None
    notes: str | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
