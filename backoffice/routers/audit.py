"""Audit trail read endpoints."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backoffice.db import get_db
from backoffice.models.audit import AuditLog
from backoffice.schemas.audit import AuditRecordRead
from backoffice.security import Actor, require_actor
from backoffice.services import audit as audit_service

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get("", response_model=list[AuditRecordRead])
def list_audit_logs(
    table_name: str | None = Query(default=None),
    record_id: str | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=audit_service.MAX_LIST_LIMIT),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
) -> list[AuditLog]:
    """Return audit records, newest first, optionally for one table or record."""

    return audit_service.list_audit_records(db, table_name=table_name, record_id=record_id, limit=limit)


@router.get("/{audit_id}", response_model=AuditRecordRead)
def read_audit_log(
    audit_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
) -> AuditLog:
    return audit_service.get_audit_record(db, audit_id)
