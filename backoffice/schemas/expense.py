"""Expense schemas."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ExpenseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(gt=Decimal("0"), decimal_places=2)
    expense_date: datetime | None = None
    expense_account_id: int
    paying_account_id: int


class ExpenseAdjust(BaseModel):
    amount: Decimal = Field(gt=Decimal("0"), decimal_places=2)
    reason: str | None = None


class ExpenseRead(BaseModel):
    id: int
    title: str
    amount: Decimal
    expense_date: datetime
    expense_account_id: int
    paying_account_id: int
    journal_entry_id: int | None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
