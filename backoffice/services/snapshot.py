"""Snapshot reader: current row state of auditable tables, read under lock."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, inspect, select
from sqlalchemy.orm import Session

from backoffice.config import get_settings
from backoffice.core.logging import get_logger
from backoffice.models import ChartOfAccount, Expense, JournalEntry, User
from backoffice.models.base import Base
from backoffice.utils.errors import ValidationError
from backoffice.utils.time import ensure_utc

logger = get_logger(__name__)


class AuditedTable(str, enum.Enum):
    """Tables whose mutations go through the audited action wrapper."""

    USERS = "users"
    CHART_OF_ACCOUNTS = "chart_of_accounts"
    JOURNAL_ENTRIES = "journal_entries"
    EXPENSES = "expenses"


@dataclass(frozen=True)
class AuditedModel:
    model: type[Base]

    @property
    def primary_key(self):
        return inspect(self.model).primary_key[0]

    def coerce_id(self, record_id: Any) -> Any:
        python_type = self.primary_key.type.python_type
        if isinstance(record_id, python_type):
            return record_id
        try:
            return python_type(record_id)
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                f"Invalid record id {record_id!r} for table '{self.model.__tablename__}'",
                details={"record_id": str(record_id)},
            ) from exc


TABLE_REGISTRY: dict[AuditedTable, AuditedModel] = {
    AuditedTable.USERS: AuditedModel(User),
    AuditedTable.CHART_OF_ACCOUNTS: AuditedModel(ChartOfAccount),
    AuditedTable.JOURNAL_ENTRIES: AuditedModel(JournalEntry),
    AuditedTable.EXPENSES: AuditedModel(Expense),
}


def resolve_table(table: AuditedTable | str) -> AuditedTable:
    """Return the registry key for ``table``; unknown names are rejected."""

    try:
        return AuditedTable(table)
    except ValueError as exc:
        raise ValidationError(
            f"Table '{table}' is not auditable", details={"table": str(table)}
        ) from exc


def _jsonable(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return ensure_utc(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def row_to_dict(instance: Base) -> dict[str, Any]:
    """Serialise the mapped columns of ``instance`` to JSON-safe values."""

    mapper = inspect(instance).mapper
    return {attr.key: _jsonable(getattr(instance, attr.key)) for attr in mapper.column_attrs}


def snapshot_statement(table: AuditedTable, record_id: Any, *, for_update: bool = True) -> Select:
    entry = TABLE_REGISTRY[table]
    stmt = select(entry.model).where(entry.primary_key == entry.coerce_id(record_id))
    if for_update:
        stmt = stmt.with_for_update()
    return stmt


def read_current_row(
    db: Session, table: AuditedTable, record_id: Any, *, for_update: bool | None = None
) -> Base | None:
    """Load the row inside the caller's transaction, locking it when configured."""

    table = resolve_table(table)
    if table not in TABLE_REGISTRY:
        logger.warning("No model registered for auditable table", extra={"table": table.value})
        return None
    if for_update is None:
        for_update = get_settings().SNAPSHOT_FOR_UPDATE
    stmt = snapshot_statement(table, record_id, for_update=for_update)
    return db.execute(stmt.execution_options(populate_existing=True)).scalar_one_or_none()


def read_current(
    db: Session, table: AuditedTable, record_id: Any, *, for_update: bool | None = None
) -> dict[str, Any] | None:
    """Return the serialised current state of a row, or ``None`` if absent."""

    row = read_current_row(db, table, record_id, for_update=for_update)
    return row_to_dict(row) if row is not None else None


__all__ = [
    "AuditedTable",
    "AuditedModel",
    "TABLE_REGISTRY",
    "read_current",
    "read_current_row",
    "resolve_table",
    "row_to_dict",
    "snapshot_statement",
]
