"""Audit recorder: append-only before/after trail of every audited action."""
from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.core.logging import get_logger
from backoffice.core.request_context import current_request_context
from backoffice.models.audit import AuditActionType, AuditLog
from backoffice.models.base import ImmutableRecordError
from backoffice.models.user import User
from backoffice.utils.audit import sanitize_payload_for_audit
from backoffice.utils.errors import AuditFailure, NotFoundError
from backoffice.utils.time import utcnow

logger = get_logger(__name__)

MAX_LIST_LIMIT = 500


def _resolve_actor_name(db: Session, actor_id: int) -> str | None:
    """Best-effort lookup of the actor's display name."""

    name = db.scalar(select(User.name).where(User.id == actor_id))
    if name is None:
        logger.info("Audit actor name not resolvable", extra={"actor_id": actor_id})
    return name


def record(
    db: Session,
    *,
    actor_id: int | None,
    action_type: AuditActionType,
    table_name: str,
    record_id: Any,
    old_data: dict | None = None,
    new_data: dict | None = None,
    notes: str | None = None,
    actor_name: str | None = None,
) -> AuditLog:
    """Append an audit record inside the caller's transaction.

    Any storage failure is raised as :class:`AuditFailure` so the surrounding
    unit of work rolls back; a mutation never commits without its record.
    """

    log_extra = {
        "actor_id": actor_id,
        "action_type": str(action_type),
        "table": table_name,
        "record_id": record_id,
    }
    try:
        action = AuditActionType(action_type)
    except ValueError as exc:
        logger.error("Audit write refused: unknown action type", extra=log_extra)
        raise AuditFailure(
            f"Unknown audit action type: {action_type!r}",
            details={"table": table_name, "record_id": str(record_id)},
        ) from exc

    ctx = current_request_context()
    try:
        if actor_name is None and actor_id is not None:
            actor_name = _resolve_actor_name(db, actor_id)

        entry = AuditLog(
            user_id=actor_id,
            user_name=actor_name,
            action_type=action,
            table_name=table_name,
            record_id=str(record_id) if record_id is not None else None,
            old_data=sanitize_payload_for_audit(old_data) if old_data is not None else None,
            new_data=sanitize_payload_for_audit(new_data) if new_data is not None else None,
            notes=notes,
            ip_address=ctx.caller_address,
            user_agent=ctx.caller_agent,
            created_at=utcnow(),
        )
        db.add(entry)
        db.flush()
    except (SQLAlchemyError, ImmutableRecordError) as exc:
        logger.exception("Audit write failed", extra=log_extra)
        raise AuditFailure(
            "Audit record could not be written",
            details={"table": table_name, "record_id": str(record_id)},
        ) from exc
    return entry


def get_audit_record(db: Session, audit_id: int) -> AuditLog:
    entry = db.get(AuditLog, audit_id)
    if entry is None:
        raise NotFoundError("Audit record not found.", details={"audit_id": audit_id})
    return entry


def list_audit_records(
    db: Session,
    *,
    table_name: str | None = None,
    record_id: str | None = None,
    limit: int = 100,
) -> list[AuditLog]:
    """Return audit records newest first, optionally scoped to one record."""

    stmt = select(AuditLog)
    if table_name is not None:
        stmt = stmt.where(AuditLog.table_name == table_name)
    if record_id is not None:
        stmt = stmt.where(AuditLog.record_id == str(record_id))
    stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(
        max(1, min(limit, MAX_LIST_LIMIT))
    )
    return list(db.scalars(stmt))


__all__ = ["record", "get_audit_record", "list_audit_records"]
