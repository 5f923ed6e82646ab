"""Chart of accounts services."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backoffice.models.ledger import ChartOfAccount
from backoffice.schemas.accounts import ChartOfAccountCreate, ChartOfAccountUpdate
from backoffice.services.audited import ActionKind, audited
from backoffice.services.snapshot import AuditedTable
from backoffice.utils.errors import NotFoundError, PermissionDeniedError, ValidationError

# Columns that PATCH may change but never set to null.
_REQUIRED_FIELDS = ("account_name", "account_type", "description", "is_control_account")


def _name_taken(db: Session, name: str, *, exclude_id: int | None = None) -> bool:
    stmt = select(ChartOfAccount.id).where(func.lower(ChartOfAccount.account_name) == name.lower())
    if exclude_id is not None:
        stmt = stmt.where(ChartOfAccount.id != exclude_id)
    return db.scalar(stmt) is not None


def _placement(db: Session, name: str, parent_id: int | None) -> tuple[int, str]:
    """Return ``(depth, path)`` for an account named ``name`` under ``parent_id``."""

    if parent_id is None:
        return 0, name
    parent = db.get(ChartOfAccount, parent_id)
    if parent is None or not parent.is_active:
        raise NotFoundError("Parent account not found.", details={"parent_id": parent_id})
    return parent.depth + 1, f"{parent.path or parent.account_name}/{name}"


def _ensure_not_descendant(db: Session, account: ChartOfAccount, parent_id: int) -> None:
    """Reject moving ``account`` under itself or one of its own descendants."""

    seen: set[int] = set()
    current: int | None = parent_id
    while current is not None and current not in seen:
        if current == account.id:
            raise ValidationError(
                "An account cannot be moved under itself or one of its descendants.",
                details={"account_id": account.id, "parent_id": parent_id},
            )
        seen.add(current)
        current = db.scalar(select(ChartOfAccount.parent_id).where(ChartOfAccount.id == current))


def _refresh_descendants(db: Session, account: ChartOfAccount) -> None:
    """Recompute depth and path for every account below ``account``."""

    pending = [account]
    while pending:
        node = pending.pop()
        children = db.scalars(select(ChartOfAccount).where(ChartOfAccount.parent_id == node.id)).all()
        for child in children:
            child.depth = node.depth + 1
            child.path = f"{node.path or node.account_name}/{child.account_name}"
            pending.append(child)


def get_account(db: Session, account_id: int) -> ChartOfAccount:
    account = db.get(ChartOfAccount, account_id)
    if account is None:
        raise NotFoundError("Account not found.", details={"account_id": account_id})
    return account


@audited("create_chart_of_account", AuditedTable.CHART_OF_ACCOUNTS, ActionKind.CREATE)
def create_chart_of_account(db: Session, actor_id: int | None, payload: ChartOfAccountCreate) -> ChartOfAccount:
    name = payload.account_name.strip()
    if _name_taken(db, name):
        raise ValidationError("Account name already exists.", details={"account_name": name})

    depth, path = _placement(db, name, payload.parent_id)
    account = ChartOfAccount(
        account_name=name,
        account_type=payload.account_type,
        description=payload.description,
        parent_id=payload.parent_id,
        path=path,
        depth=depth,
        is_control_account=payload.is_control_account,
    )
    db.add(account)
    db.flush()
    return account


@audited("update_chart_of_account", AuditedTable.CHART_OF_ACCOUNTS, ActionKind.UPDATE)
def update_chart_of_account(
    db: Session, actor_id: int | None, account_id: int, payload: ChartOfAccountUpdate
) -> ChartOfAccount:
    account = get_account(db, account_id)
    if not account.is_active:
        raise ValidationError("Inactive accounts cannot be edited.", details={"account_id": account_id})

    changes = payload.model_dump(exclude_unset=True)
    nulls = sorted(field for field in _REQUIRED_FIELDS if field in changes and changes[field] is None)
    if nulls:
        raise ValidationError("These account fields cannot be cleared.", details={"fields": nulls})
    if "account_name" in changes:
        changes["account_name"] = changes["account_name"].strip()
        if _name_taken(db, changes["account_name"], exclude_id=account.id):
            raise ValidationError(
                "Account name already exists for another account.",
                details={"account_name": changes["account_name"]},
            )
    if changes.get("parent_id") is not None:
        _ensure_not_descendant(db, account, changes["parent_id"])

    for field, value in changes.items():
        setattr(account, field, value)

    if "account_name" in changes or "parent_id" in changes:
        account.depth, account.path = _placement(db, account.account_name, account.parent_id)
        _refresh_descendants(db, account)

    db.flush()
    return account


@audited("deactivate_chart_of_account", AuditedTable.CHART_OF_ACCOUNTS, ActionKind.DELETE)
def deactivate_chart_of_account(db: Session, actor_id: int | None, account_id: int) -> ChartOfAccount:
    """Soft-delete an account; system default accounts are protected."""

    account = get_account(db, account_id)
    if account.is_default:
        raise PermissionDeniedError(
            "Default accounts are system-protected and cannot be deleted.",
            details={"account_id": account_id},
        )
    if not account.is_active:
        raise ValidationError("Account is already inactive.", details={"account_id": account_id})
    account.is_active = False
    db.flush()
    return account


__all__ = [
    "create_chart_of_account",
    "deactivate_chart_of_account",
    "get_account",
    "update_chart_of_account",
]
