"""Journal entry endpoints."""
from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from backoffice.db import get_db
from backoffice.models.ledger import JournalEntry
from backoffice.schemas.ledger import JournalEntryCreate, JournalEntryRead, JournalEntryReverse
from backoffice.security import Actor, require_actor
from backoffice.services import journal as journal_service
from backoffice.services import ledger as ledger_service

router = APIRouter(prefix="/journal-entries", tags=["journal-entries"])


# Write endpoints re-read the committed entry so its lines are loaded in a live session.
@router.post(
    "",
    response_model=JournalEntryRead,
    status_code=status.HTTP_201_CREATED,
)
def create_journal_entry(
    payload: JournalEntryCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
) -> JournalEntry:
    """Post a manual, balanced journal entry."""

    entry = journal_service.create_journal_entry_public(actor.id, payload, actor_name=actor.name)
    return ledger_service.get_journal_entry(db, entry.id)


@router.get("/{entry_id}", response_model=JournalEntryRead)
def read_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
) -> JournalEntry:
    return ledger_service.get_journal_entry(db, entry_id)


@router.post(
    "/{entry_id}/reverse",
    response_model=JournalEntryRead,
    status_code=status.HTTP_201_CREATED,
)
def reverse_journal_entry(
    entry_id: int,
    payload: JournalEntryReverse | None = Body(default=None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
) -> JournalEntry:
    """Post the offsetting entry of an existing journal entry."""

    entry = journal_service.reverse_journal_entry_public(actor.id, entry_id, payload, actor_name=actor.name)
    return ledger_service.get_journal_entry(db, entry.id)
