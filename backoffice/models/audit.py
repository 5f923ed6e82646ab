"""Audit log model."""
import enum

from sqlalchemy import Enum as SqlEnum, Index, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, append_only


class AuditActionType(str, enum.Enum):
    """Kind of change captured by an audit record."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ADJUSTMENT = "ADJUSTMENT"
    LOGIN = "LOGIN"
    VIEW = "VIEW"


@append_only
class AuditLog(Base):
    """Immutable before/after record of one audited action."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_table_record", "table_name", "record_id"),
        Index("ix_audit_logs_created_at", "created_at"),
    )

    # Not a foreign key: the trail must outlive the user row.
    user_id: Mapped[int | None] = mapped_column(nullable=True, index=True)
    user_name: Mapped[str | None] = mapped_column(String(150), nullable=True)
    action_type: Mapped[AuditActionType] = mapped_column(
        SqlEnum(AuditActionType, name="audit_action_type"), nullable=False, index=True
    )
    table_name: Mapped[str] = mapped_column(String(100), nullable=False)
    record_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    old_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    new_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(255), nullable=True)
