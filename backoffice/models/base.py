"""Declarative base model for SQLAlchemy."""
from datetime import UTC, datetime

from sqlalchemy import DateTime, event
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, object_session


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class ImmutableRecordError(RuntimeError):
    """Raised when code tries to rewrite or remove an append-only row."""


def append_only(model: type[Base]) -> type[Base]:
    """Class decorator refusing ORM updates and deletes on ``model``."""

    @event.listens_for(model, "before_update")
    def _refuse_update(mapper, connection, target) -> None:
        session = object_session(target)
        if session is not None and session.is_modified(target, include_collections=False):
            raise ImmutableRecordError(f"{model.__tablename__} rows are append-only")

    @event.listens_for(model, "before_delete")
    def _refuse_delete(mapper, connection, target) -> None:
        raise ImmutableRecordError(f"{model.__tablename__} rows are append-only")

    return model
