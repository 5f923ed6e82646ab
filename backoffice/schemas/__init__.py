"""Schema package exports."""
from .accounts import ChartOfAccountCreate, ChartOfAccountRead, ChartOfAccountUpdate
from .audit import AuditRecordRead
from .expense import ExpenseAdjust, ExpenseCreate, ExpenseRead
from .ledger import (
    JournalEntryCreate,
    JournalEntryRead,
    JournalEntryReverse,
    JournalLineIn,
    JournalLineRead,
)

__all__ = [
    "AuditRecordRead",
    "ChartOfAccountCreate",
    "ChartOfAccountRead",
    "ChartOfAccountUpdate",
    "ExpenseAdjust",
    "ExpenseCreate",
    "ExpenseRead",
    "JournalEntryCreate",
    "JournalEntryRead",
    "JournalEntryReverse",
    "JournalLineIn",
    "JournalLineRead",
]
