"""Expense services; each one books its journal entry in the same unit of work."""
from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from backoffice.models.expense import Expense
from backoffice.models.ledger import ChartOfAccount, JournalEntryReferenceType
from backoffice.schemas.expense import ExpenseAdjust, ExpenseCreate
from backoffice.services import ledger as ledger_service
from backoffice.services.audited import ActionKind, audited
from backoffice.services.ledger import JournalLine
from backoffice.services.snapshot import AuditedTable
from backoffice.utils.errors import NotFoundError, ValidationError
from backoffice.utils.time import utcnow


def _active_account(db: Session, account_id: int, *, role: str) -> ChartOfAccount:
    account = db.get(ChartOfAccount, account_id)
    if account is None or not account.is_active:
        raise NotFoundError(f"{role.capitalize()} account not found.", details={f"{role}_account_id": account_id})
    return account


def get_expense(db: Session, expense_id: int) -> Expense:
    expense = db.get(Expense, expense_id)
    if expense is None:
        raise NotFoundError("Expense not found.", details={"expense_id": expense_id})
    return expense


def _active_expense(db: Session, expense_id: int) -> Expense:
    expense = get_expense(db, expense_id)
    if not expense.is_active:
        raise ValidationError("Expense has been voided.", details={"expense_id": expense_id})
    return expense


def _book(
    db: Session,
    expense: Expense,
    *,
    debit_account: int,
    credit_account: int,
    amount: Decimal,
    reference_type: JournalEntryReferenceType,
    actor_id: int | None,
    description: str,
):
    return ledger_service.post_journal_entry(
        db,
        entry_date=utcnow(),
        reference_type=reference_type,
        reference_id=expense.id,
        actor_id=actor_id,
        description=description,
        lines=[
            JournalLine(chart_of_account_id=debit_account, debit=amount, memo=expense.title),
            JournalLine(chart_of_account_id=credit_account, credit=amount, memo=expense.title),
        ],
    )


@audited("record_expense", AuditedTable.EXPENSES, ActionKind.CREATE)
def record_expense(db: Session, actor_id: int | None, payload: ExpenseCreate) -> Expense:
    """Record an expense and post Dr expense account / Cr paying account."""

    if payload.expense_account_id == payload.paying_account_id:
        raise ValidationError("Expense and paying accounts must differ.")
    _active_account(db, payload.expense_account_id, role="expense")
    _active_account(db, payload.paying_account_id, role="paying")

    expense = Expense(
        title=payload.title.strip(),
        amount=payload.amount,
        expense_date=payload.expense_date or utcnow(),
        expense_account_id=payload.expense_account_id,
        paying_account_id=payload.paying_account_id,
    )
    db.add(expense)
    db.flush()

    entry = _book(
        db,
        expense,
        debit_account=expense.expense_account_id,
        credit_account=expense.paying_account_id,
        amount=payload.amount,
        reference_type=JournalEntryReferenceType.EXPENSE,
        actor_id=actor_id,
        description=f"Expense: {expense.title}",
    )
    expense.journal_entry_id = entry.id
    db.flush()
    return expense


@audited("adjust_expense_amount", AuditedTable.EXPENSES, ActionKind.ADJUSTMENT)
def adjust_expense_amount(db: Session, actor_id: int | None, expense_id: int, payload: ExpenseAdjust) -> Expense:
    """Change an expense amount and post the difference as an adjustment entry."""

    expense = _active_expense(db, expense_id)
    delta = Decimal(payload.amount) - Decimal(expense.amount)
    if delta == 0:
        raise ValidationError("New amount equals the current amount.", details={"expense_id": expense_id})

    description = f"Adjustment of expense #{expense.id}"
    if payload.reason:
        description = f"{description}: {payload.reason}"

    if delta > 0:
        debit_account, credit_account = expense.expense_account_id, expense.paying_account_id
    else:
        debit_account, credit_account = expense.paying_account_id, expense.expense_account_id
    _book(
        db,
        expense,
        debit_account=debit_account,
        credit_account=credit_account,
        amount=abs(delta),
        reference_type=JournalEntryReferenceType.ADJUSTMENT,
        actor_id=actor_id,
        description=description,
    )
    expense.amount = payload.amount
    db.flush()
    return expense


@audited("void_expense", AuditedTable.EXPENSES, ActionKind.DELETE)
def void_expense(db: Session, actor_id: int | None, expense_id: int) -> Expense:
    """Soft-delete an expense and post the offsetting entry for its current amount."""

    expense = _active_expense(db, expense_id)
    _book(
        db,
        expense,
        debit_account=expense.paying_account_id,
        credit_account=expense.expense_account_id,
        amount=Decimal(expense.amount),
        reference_type=JournalEntryReferenceType.EXPENSE,
        actor_id=actor_id,
        description=f"Void of expense #{expense.id}",
    )
    expense.is_active = False
    db.flush()
    return expense


__all__ = ["adjust_expense_amount", "get_expense", "record_expense", "void_expense"]
