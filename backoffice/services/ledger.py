"""Ledger poster: validated double-entry journal postings."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from backoffice.config import get_settings
from backoffice.core.logging import get_logger
from backoffice.models.ledger import (
    ChartOfAccount,
    JournalEntry,
    JournalEntryLine,
    JournalEntryReferenceType,
)
from backoffice.utils.errors import LedgerImbalance, NotFoundError, ValidationError
from backoffice.utils.time import utcnow

logger = get_logger(__name__)

_ZERO = Decimal("0")
_DECIMAL_QUANT = Decimal("0.01")


def _to_decimal(value: Any, *, field: str) -> Decimal:
    """Convert an amount to ``Decimal`` without going through binary floats."""

    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value if value is not None else 0))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise ValidationError(f"Invalid {field} amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValidationError(f"Invalid {field} amount: {value!r}")
    return amount


def _quantize(amount: Decimal) -> Decimal:
    return amount.quantize(_DECIMAL_QUANT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class JournalLine:
    """A proposed debit or credit against one ledger account."""

    chart_of_account_id: int
    debit: Decimal = _ZERO
    credit: Decimal = _ZERO
    memo: str = ""

    @classmethod
    def coerce(cls, value: "JournalLine | Mapping[str, Any]") -> "JournalLine":
        if isinstance(value, JournalLine):
            line = value
        else:
            line = cls(
                chart_of_account_id=value.get("chart_of_account_id"),
                debit=value.get("debit", _ZERO),
                credit=value.get("credit", _ZERO),
                memo=value.get("memo") or "",
            )
        return cls(
            chart_of_account_id=line.chart_of_account_id,
            debit=_to_decimal(line.debit, field="debit"),
            credit=_to_decimal(line.credit, field="credit"),
            memo=line.memo,
        )


def validate_lines(
    lines: Iterable[JournalLine | Mapping[str, Any]],
) -> tuple[list[JournalLine], Decimal, Decimal]:
    """Check the line set and return it with its debit and credit totals.

    The returned lines and totals are quantised to cents, exactly as they are
    stored. Raises :class:`ValidationError` for malformed lines and
    :class:`LedgerImbalance` when the totals differ by more than the
    configured tolerance, either as given or once rounded to cents.
    """

    normalized = [JournalLine.coerce(line) for line in lines]
    if not normalized:
        raise ValidationError("A journal entry needs at least one line.")

    for index, line in enumerate(normalized):
        if line.chart_of_account_id is None:
            raise ValidationError("Journal line is missing its ledger account.", details={"line": index})
        if line.debit < _ZERO or line.credit < _ZERO:
            raise ValidationError("Journal line amounts must be non-negative.", details={"line": index})
        if line.debit != _ZERO and line.credit != _ZERO:
            raise ValidationError(
                "A journal line cannot be both a debit and a credit.", details={"line": index}
            )

    tolerance = get_settings().LEDGER_BALANCE_TOLERANCE
    total_debit = sum((line.debit for line in normalized), _ZERO)
    total_credit = sum((line.credit for line in normalized), _ZERO)
    if abs(total_debit - total_credit) > tolerance:
        raise LedgerImbalance(total_debit, total_credit)

    # Stored lines are cents; they must balance on their own.
    stored = [
        replace(line, debit=_quantize(line.debit), credit=_quantize(line.credit)) for line in normalized
    ]
    stored_debit = sum((line.debit for line in stored), _ZERO)
    stored_credit = sum((line.credit for line in stored), _ZERO)
    if abs(stored_debit - stored_credit) > tolerance:
        raise LedgerImbalance(stored_debit, stored_credit)
    return stored, stored_debit, stored_credit


def _ensure_accounts_exist(db: Session, account_ids: set[int]) -> None:
    found = set(db.scalars(select(ChartOfAccount.id).where(ChartOfAccount.id.in_(account_ids))))
    missing = sorted(account_ids - found)
    if missing:
        raise NotFoundError(
            "Journal line references an unknown ledger account.",
            details={"chart_of_account_ids": missing},
        )


def _reference_type(value: JournalEntryReferenceType | str) -> JournalEntryReferenceType:
    try:
        return JournalEntryReferenceType(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown journal reference type: {value!r}") from exc


def post_journal_entry(
    db: Session,
    *,
    entry_date: datetime,
    reference_type: JournalEntryReferenceType | str,
    reference_id: Any,
    actor_id: int | None,
    description: str,
    lines: Iterable[JournalLine | Mapping[str, Any]],
    reversal_of_id: int | None = None,
) -> JournalEntry:
    """Insert a balanced journal entry and its lines in the caller's transaction.

    Totals are computed from the lines, never taken from the caller. The
    session is flushed but not committed.
    """

    normalized, total_debit, total_credit = validate_lines(lines)
    ref_type = _reference_type(reference_type)
    _ensure_accounts_exist(db, {line.chart_of_account_id for line in normalized})

    entry = JournalEntry(
        entry_date=entry_date,
        reference_type=ref_type,
        reference_id=str(reference_id) if reference_id is not None else None,
        description=description or "",
        total_debit=total_debit,
        total_credit=total_credit,
        user_id=actor_id,
        reversal_of_id=reversal_of_id,
    )
    db.add(entry)
    db.flush()

    db.add_all(
        [
            JournalEntryLine(
                journal_entry_id=entry.id,
                chart_of_account_id=line.chart_of_account_id,
                debit=line.debit,
                credit=line.credit,
                description=line.memo,
            )
            for line in normalized
        ]
    )
    db.flush()

    logger.info(
        "Journal entry posted",
        extra={
            "journal_entry_id": entry.id,
            "reference_type": ref_type.value,
            "reference_id": entry.reference_id,
            "total": str(entry.total_debit),
            "line_count": len(normalized),
        },
    )
    return entry


def get_journal_entry(db: Session, entry_id: int) -> JournalEntry:
    entry = db.get(JournalEntry, entry_id, options=[selectinload(JournalEntry.lines)])
    if entry is None:
        raise NotFoundError("Journal entry not found.", details={"journal_entry_id": entry_id})
    return entry


def reverse_journal_entry(
    db: Session,
    entry_id: int,
    *,
    actor_id: int | None,
    entry_date: datetime | None = None,
    description: str | None = None,
) -> JournalEntry:
    """Post the offsetting entry of ``entry_id`` (debits and credits swapped)."""

    original = get_journal_entry(db, entry_id)
    already = db.scalar(select(JournalEntry.id).where(JournalEntry.reversal_of_id == original.id))
    if already is not None:
        raise ValidationError(
            "Journal entry has already been reversed.",
            details={"journal_entry_id": original.id, "reversal_id": already},
        )

    lines = [
        JournalLine(
            chart_of_account_id=line.chart_of_account_id,
            debit=line.credit,
            credit=line.debit,
            memo=f"Reversal: {line.description}" if line.description else "Reversal",
        )
        for line in original.lines
    ]
    return post_journal_entry(
        db,
        entry_date=entry_date or utcnow(),
        reference_type=original.reference_type,
        reference_id=original.reference_id,
        actor_id=actor_id,
        description=description or f"Reversal of journal entry #{original.id}",
        lines=lines,
        reversal_of_id=original.id,
    )


def account_balance(db: Session, chart_of_account_id: int) -> Decimal:
    """Return debits minus credits posted against one ledger account."""

    stmt = select(
        func.coalesce(func.sum(JournalEntryLine.debit), 0),
        func.coalesce(func.sum(JournalEntryLine.credit), 0),
    ).where(JournalEntryLine.chart_of_account_id == chart_of_account_id)
    debit, credit = db.execute(stmt).one()
    return _quantize(Decimal(str(debit)) - Decimal(str(credit)))


__all__ = [
    "JournalLine",
    "account_balance",
    "get_journal_entry",
    "post_journal_entry",
    "reverse_journal_entry",
    "validate_lines",
]
