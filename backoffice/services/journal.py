"""Manual journal entry services exposed to API callers."""
from __future__ import annotations

from sqlalchemy.orm import Session

from backoffice.models.ledger import JournalEntry
from backoffice.schemas.ledger import JournalEntryCreate, JournalEntryReverse
from backoffice.services import ledger as ledger_service
from backoffice.services.audited import ActionKind, audited
from backoffice.services.ledger import JournalLine
from backoffice.services.snapshot import AuditedTable
from backoffice.utils.time import utcnow


@audited("create_journal_entry", AuditedTable.JOURNAL_ENTRIES, ActionKind.CREATE)
def create_journal_entry_public(db: Session, actor_id: int | None, payload: JournalEntryCreate) -> JournalEntry:
    return ledger_service.post_journal_entry(
        db,
        entry_date=payload.entry_date or utcnow(),
        reference_type=payload.reference_type,
        reference_id=payload.reference_id,
        actor_id=actor_id,
        description=payload.description,
        lines=[
            JournalLine(
                chart_of_account_id=line.chart_of_account_id,
                debit=line.debit,
                credit=line.credit,
                memo=line.memo,
            )
            for line in payload.lines
        ],
    )


# Journal entries are immutable, so a reversal is audited as the creation of
# the offsetting entry.
@audited(
    "reverse_journal_entry",
    AuditedTable.JOURNAL_ENTRIES,
    ActionKind.CREATE,
    note="Offsetting entry",
)
def reverse_journal_entry_public(
    db: Session, actor_id: int | None, entry_id: int, payload: JournalEntryReverse | None = None
) -> JournalEntry:
    payload = payload or JournalEntryReverse()
    return ledger_service.reverse_journal_entry(
        db,
        entry_id,
        actor_id=actor_id,
        entry_date=payload.entry_date,
        description=payload.description,
    )


__all__ = ["create_journal_entry_public", "reverse_journal_entry_public"]
