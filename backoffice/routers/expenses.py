"""Expense endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backoffice.db import get_db
from backoffice.models.expense import Expense
from backoffice.schemas.expense import ExpenseAdjust, ExpenseCreate, ExpenseRead
from backoffice.security import Actor, require_actor
from backoffice.services import expenses as expenses_service

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post(
    "",
    response_model=ExpenseRead,
    status_code=status.HTTP_201_CREATED,
)
def create_expense(
    payload: ExpenseCreate,
    actor: Actor = Depends(require_actor),
) -> Expense:
    """Record an expense and book it to the ledger."""

    return expenses_service.record_expense(actor.id, payload, actor_name=actor.name)


@router.get("/{expense_id}", response_model=ExpenseRead)
def read_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
) -> Expense:
    return expenses_service.get_expense(db, expense_id)


@router.post("/{expense_id}/adjust", response_model=ExpenseRead)
def adjust_expense(
    expense_id: int,
    payload: ExpenseAdjust,
    actor: Actor = Depends(require_actor),
) -> Expense:
    """Correct an expense amount; the difference is posted as an adjustment."""

    return expenses_service.adjust_expense_amount(actor.id, expense_id, payload, actor_name=actor.name)


@router.delete("/{expense_id}", response_model=ExpenseRead)
def void_expense(
    expense_id: int,
    actor: Actor = Depends(require_actor),
) -> Expense:
    return expenses_service.void_expense(actor.id, expense_id, actor_name=actor.name)
