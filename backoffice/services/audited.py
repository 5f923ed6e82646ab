"""Audited action wrapper.

Every state-changing business action runs through :func:`run_audited` (or the
:func:`audited` decorator), which executes it as one unit of work::

    START -> SNAPSHOT -> EXECUTE -> DETERMINE -> RECORD -> COMMITTED
                  \\__________\\__________________\\______-> ROLLED_BACK

The snapshot step runs only for actions that target an existing record
(UPDATE, DELETE, ADJUSTMENT) and locks that row for the rest of the
transaction. A failure at any step rolls back the business mutation, any
journal posting made by the business logic, and the audit record; the caller
sees either full success or no effect.
"""
from __future__ import annotations

import enum
import functools
from dataclasses import dataclass
from typing import Any, Callable, Mapping, TypeVar

from sqlalchemy.orm import Session

from backoffice.core.logging import get_logger
from backoffice.core.transaction import with_transaction
from backoffice.models.audit import AuditActionType, AuditLog
from backoffice.models.base import Base
from backoffice.services import audit as audit_service
from backoffice.services.snapshot import AuditedTable, read_current, resolve_table, row_to_dict
from backoffice.utils.errors import AuditFailure, EngineError, NotFoundError, ValidationError

T = TypeVar("T")

logger = get_logger(__name__)


class ActionKind(str, enum.Enum):
    """Explicit classification of an audited action."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ADJUSTMENT = "ADJUSTMENT"

    @property
    def targets_existing(self) -> bool:
        return self is not ActionKind.CREATE

    @property
    def audit_type(self) -> AuditActionType:
        return AuditActionType(self.value)


@dataclass(frozen=True)
class ActionMeta:
    """Identity of an audited action: name, primary table and kind."""

    name: str
    table: AuditedTable
    kind: ActionKind
    note: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValidationError("Audited actions need a name.")
        object.__setattr__(self, "table", resolve_table(self.table))
        try:
            object.__setattr__(self, "kind", ActionKind(self.kind))
        except ValueError as exc:
            raise ValidationError(f"Unknown action kind: {self.kind!r}") from exc


@dataclass
class AuditedOutcome:
    """What a successful audited action produced, for callers that need the trail."""

    result: Any
    record_id: str
    audit_id: int


BusinessFn = Callable[..., T]


def _result_id(result: Any) -> Any | None:
    if isinstance(result, Mapping):
        return result.get("id")
    return getattr(result, "id", None)


def _result_state(result: Any) -> dict | None:
    if isinstance(result, Base):
        return row_to_dict(result)
    if isinstance(result, Mapping):
        return dict(result)
    return None


def execute_audited(
    db: Session,
    actor_id: int | None,
    meta: ActionMeta,
    business_fn: BusinessFn,
    *args: Any,
    target_id: Any = None,
    actor_name: str | None = None,
    **kwargs: Any,
) -> tuple[T, AuditLog]:
    """Run the audited steps inside an already open transaction.

    The caller owns the transaction. Returns the business result together with
    the audit record that was staged for it.
    """

    old_data: dict | None = None
    if meta.kind.targets_existing:
        if target_id is None:
            raise ValidationError(
                f"{meta.kind.value} action '{meta.name}' needs the id of the record it changes.",
                details={"action": meta.name, "table": meta.table.value},
            )
        old_data = read_current(db, meta.table, target_id)
        if old_data is None:
            raise NotFoundError(
                f"{meta.table.value} record {target_id} not found.",
                details={"table": meta.table.value, "record_id": str(target_id)},
            )

    result = business_fn(db, actor_id, *args, **kwargs)
    db.flush()

    record_id = target_id if meta.kind.targets_existing else _result_id(result)
    if record_id is None:
        logger.error(
            "Audited action produced no record id",
            extra={"action": meta.name, "table": meta.table.value, "actor_id": actor_id},
        )
        raise AuditFailure(
            f"Action '{meta.name}' did not expose a record id to audit.",
            details={"action": meta.name, "table": meta.table.value},
        )

    # Post-mutation state; a hard delete leaves nothing to read back.
    new_data = read_current(db, meta.table, record_id, for_update=False)
    if new_data is None and meta.kind is ActionKind.CREATE:
        new_data = _result_state(result)

    notes = f"Action: {meta.name} on {meta.table.value} record {record_id}"
    if meta.note:
        notes = f"{notes}. {meta.note}"

    entry = audit_service.record(
        db,
        actor_id=actor_id,
        actor_name=actor_name,
        action_type=meta.kind.audit_type,
        table_name=meta.table.value,
        record_id=record_id,
        old_data=old_data,
        new_data=new_data,
        notes=notes,
    )
    return result, entry


def run_audited_outcome(
    actor_id: int | None,
    meta: ActionMeta,
    business_fn: BusinessFn,
    *args: Any,
    target_id: Any = None,
    actor_name: str | None = None,
    session_factory: Callable[[], Session] | None = None,
    **kwargs: Any,
) -> AuditedOutcome:
    """Like :func:`run_audited` but also return the committed audit record id."""

    log_extra = {
        "action": meta.name,
        "table": meta.table.value,
        "kind": meta.kind.value,
        "actor_id": actor_id,
        "target_id": target_id,
    }

    def _unit(db: Session) -> AuditedOutcome:
        result, entry = execute_audited(
            db,
            actor_id,
            meta,
            business_fn,
            *args,
            target_id=target_id,
            actor_name=actor_name,
            **kwargs,
        )
        return AuditedOutcome(result=result, record_id=entry.record_id, audit_id=entry.id)

    try:
        outcome = with_transaction(_unit, session_factory=session_factory)
    except EngineError as exc:
        if exc.expected:
            logger.warning(
                "Audited action rejected; rolled back",
                extra={**log_extra, "error_code": exc.code, "error": exc.message},
            )
        else:
            # Traceback already logged where the failure was raised.
            logger.error(
                "Audited action failed; rolled back",
                extra={**log_extra, "error_code": exc.code, "details": exc.details},
            )
        raise
    except Exception:
        logger.exception("Audited action raised; rolled back", extra=log_extra)
        raise

    logger.info(
        "Audited action committed",
        extra={**log_extra, "record_id": outcome.record_id, "audit_id": outcome.audit_id},
    )
    return outcome


def run_audited(
    actor_id: int | None,
    meta: ActionMeta,
    business_fn: BusinessFn,
    *args: Any,
    target_id: Any = None,
    actor_name: str | None = None,
    session_factory: Callable[[], Session] | None = None,
    **kwargs: Any,
) -> T:
    """Execute ``business_fn(db, actor_id, *args, **kwargs)`` as one audited unit of work.

    ``target_id`` names the record an UPDATE/DELETE/ADJUSTMENT changes; for
    CREATE the record id is read from the result's ``id``.
    """

    return run_audited_outcome(
        actor_id,
        meta,
        business_fn,
        *args,
        target_id=target_id,
        actor_name=actor_name,
        session_factory=session_factory,
        **kwargs,
    ).result


def audited(
    name: str, table: AuditedTable | str, kind: ActionKind | str, *, note: str | None = None
) -> Callable[[BusinessFn], Callable[..., T]]:
    """Decorate ``fn(db, actor_id, *args)`` into ``wrapper(actor_id, *args)``.

    For actions that change an existing record the first positional argument
    after ``actor_id`` is that record's id.
    """

    meta = ActionMeta(name=name, table=table, kind=kind, note=note)

    def decorator(fn: BusinessFn) -> Callable[..., T]:
        @functools.wraps(fn)
        def wrapper(
            actor_id: int | None,
            *args: Any,
            actor_name: str | None = None,
            session_factory: Callable[[], Session] | None = None,
            **kwargs: Any,
        ) -> T:
            target_id = args[0] if meta.kind.targets_existing and args else None
            return run_audited(
                actor_id,
                meta,
                fn,
                *args,
                target_id=target_id,
                actor_name=actor_name,
                session_factory=session_factory,
                **kwargs,
            )

        wrapper.meta = meta  # type: ignore[attr-defined]
        return wrapper

    return decorator


__all__ = [
    "ActionKind",
    "ActionMeta",
    "AuditedOutcome",
    "audited",
    "execute_audited",
    "run_audited",
    "run_audited_outcome",
]
