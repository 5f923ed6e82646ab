"""Chart of accounts endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backoffice.db import get_db
from backoffice.models.ledger import ChartOfAccount
from backoffice.schemas.accounts import ChartOfAccountCreate, ChartOfAccountRead, ChartOfAccountUpdate
from backoffice.security import Actor, require_actor
from backoffice.services import accounts as accounts_service

router = APIRouter(prefix="/chart-of-accounts", tags=["chart-of-accounts"])


@router.post(
    "",
    response_model=ChartOfAccountRead,
    status_code=status.HTTP_201_CREATED,
)
def create_account(
    payload: ChartOfAccountCreate,
    actor: Actor = Depends(require_actor),
) -> ChartOfAccount:
    """Create a ledger account."""

    return accounts_service.create_chart_of_account(actor.id, payload, actor_name=actor.name)


@router.get("/{account_id}", response_model=ChartOfAccountRead)
def read_account(
    account_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
) -> ChartOfAccount:
    return accounts_service.get_account(db, account_id)


@router.patch("/{account_id}", response_model=ChartOfAccountRead)
def update_account(
    account_id: int,
    payload: ChartOfAccountUpdate,
    actor: Actor = Depends(require_actor),
) -> ChartOfAccount:
    """Edit a ledger account; the previous state is kept in the audit trail."""

    return accounts_service.update_chart_of_account(actor.id, account_id, payload, actor_name=actor.name)


@router.delete("/{account_id}", response_model=ChartOfAccountRead)
def deactivate_account(
    account_id: int,
    actor: Actor = Depends(require_actor),
) -> ChartOfAccount:
    """Soft-delete a ledger account. Default accounts are refused with 403."""

    return accounts_service.deactivate_chart_of_account(actor.id, account_id, actor_name=actor.name)
