"""Storage transaction provider: one atomic unit of work per invocation."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from backoffice import db
from backoffice.core.logging import get_logger
from backoffice.utils.errors import PersistenceError

T = TypeVar("T")

logger = get_logger(__name__)

# Overridable factory; tests and workers may point the engine at another database.
_session_factory: Callable[[], Session] | None = None


def set_session_factory(factory: sessionmaker[Session] | Callable[[], Session] | None) -> None:
    global _session_factory
    _session_factory = factory


def _open_session(session_factory: Callable[[], Session] | None) -> Session:
    factory = session_factory or _session_factory or db.get_sessionmaker()
    return factory()


@contextmanager
def unit_of_work(session_factory: Callable[[], Session] | None = None) -> Iterator[Session]:
    """Yield a session inside a single transaction.

    Commits when the block exits normally and rolls back on any exception,
    including cancellation (``BaseException``). Storage failures surface as
    :class:`PersistenceError`; every other error propagates unchanged.
    """

    session = _open_session(session_factory)
    try:
        with session.begin():
            yield session
    except SQLAlchemyError as exc:
        logger.exception("Unit of work rolled back after storage failure")
        raise PersistenceError(
            "Storage operation failed", details={"error": exc.__class__.__name__}
        ) from exc
    finally:
        session.close()


def with_transaction(
    fn: Callable[[Session], T], *, session_factory: Callable[[], Session] | None = None
) -> T:
    """Run ``fn`` with a transaction-scoped session and return its result."""

    with unit_of_work(session_factory) as session:
        return fn(session)


__all__ = ["set_session_factory", "unit_of_work", "with_transaction"]
