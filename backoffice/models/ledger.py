"""Chart of accounts and double-entry journal models."""
from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, append_only


class ChartOfAccountType(str, enum.Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"
    OTHER = "other"


class JournalEntryReferenceType(str, enum.Enum):
    """Business action a journal entry originates from."""

    PURCHASE = "purchase"
    SALE = "sale"
    EXPENSE = "expense"
    PAYMENT_RECEIVED = "payment_received"
    BILL_PAYMENT = "bill_payment"
    ADJUSTMENT = "adjustment"
    COMMISSION_PAYMENT = "commission_payment"
    INVENTORY_ADJUSTMENT = "inventory_adjustment"


class ChartOfAccount(Base):
    """A ledger account that journal lines may reference."""

    __tablename__ = "chart_of_accounts"

    account_name: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    account_type: Mapped[ChartOfAccountType] = mapped_column(
        SqlEnum(ChartOfAccountType, name="chart_of_account_type"), nullable=False
    )
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("chart_of_accounts.id", ondelete="SET NULL"), nullable=True, index=True
    )
    path: Mapped[str | None] = mapped_column(Text, nullable=True)
    depth: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_control_account: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Default accounts are seeded by the system and cannot be removed.
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    parent = relationship("ChartOfAccount", remote_side="ChartOfAccount.id")


@append_only
class JournalEntry(Base):
    """Header of one balanced accounting event."""

    __tablename__ = "journal_entries"

    entry_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    reference_type: Mapped[JournalEntryReferenceType] = mapped_column(
        SqlEnum(JournalEntryReferenceType, name="journal_entry_reference_type"), nullable=False
    )
    reference_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    total_debit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    total_credit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    user_id: Mapped[int | None] = mapped_column(nullable=True, index=True)
    reversal_of_id: Mapped[int | None] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=True, unique=True
    )

    lines = relationship(
        "JournalEntryLine", back_populates="journal_entry", order_by="JournalEntryLine.id"
    )


@append_only
class JournalEntryLine(Base):
    """One debit or credit against a ledger account."""

    __tablename__ = "journal_entry_lines"
    __table_args__ = (
        CheckConstraint("debit >= 0 AND credit >= 0", name="ck_journal_line_non_negative"),
        CheckConstraint("debit = 0 OR credit = 0", name="ck_journal_line_single_side"),
    )

    journal_entry_id: Mapped[int] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=False, index=True
    )
    chart_of_account_id: Mapped[int] = mapped_column(
        ForeignKey("chart_of_accounts.id"), nullable=False, index=True
    )
    debit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    credit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)

    journal_entry = relationship("JournalEntry", back_populates="lines")
