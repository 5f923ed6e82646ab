"""ORM models package."""
from .api_key import ApiKey
from .audit import AuditActionType, AuditLog
from .base import Base, ImmutableRecordError
from .expense import Expense
from .ledger import (
    ChartOfAccount,
    ChartOfAccountType,
    JournalEntry,
    JournalEntryLine,
    JournalEntryReferenceType,
)
from .user import User

__all__ = [
    "ApiKey",
    "AuditActionType",
    "AuditLog",
    "Base",
    "ChartOfAccount",
    "ChartOfAccountType",
    "Expense",
    "ImmutableRecordError",
    "JournalEntry",
    "JournalEntryLine",
    "JournalEntryReferenceType",
    "User",
]
