"""Journal entry schemas."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from backoffice.models.ledger import JournalEntryReferenceType


class JournalLineIn(BaseModel):
    # Amount rules (sign, single side, balance) are enforced by the ledger poster.
    chart_of_account_id: int
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")
    memo: str = ""


class JournalEntryCreate(BaseModel):
    entry_date: datetime | None = None
    reference_type: JournalEntryReferenceType = JournalEntryReferenceType.ADJUSTMENT
    reference_id: str | None = Field(default=None, max_length=64)
    description: str = ""
    lines: list[JournalLineIn]


class JournalEntryReverse(BaseModel):
    entry_date: datetime | None = None
    description: str | None = None


class JournalLineRead(BaseModel):
    id: int
    chart_of_account_id: int
    debit: Decimal
    credit: Decimal
    description: str

    model_config = ConfigDict(from_attributes=True)


class JournalEntryRead(BaseModel):
    id: int
    entry_date: datetime
    reference_type: JournalEntryReferenceType
    reference_id: str | None
    description: str
    total_debit: Decimal
    total_credit: Decimal
    user_id: int | None
    reversal_of_id: int | None
    lines: list[JournalLineRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
