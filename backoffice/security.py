# backoffice/security.py
"""Security dependencies resolving API keys to the acting operator."""
from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from backoffice.core.logging import get_logger
from backoffice.db import get_db
from backoffice.models.user import User
from backoffice.utils.apikey import find_valid_key
from backoffice.utils.errors import error_response
from backoffice.utils.time import utcnow

logger = get_logger(__name__)


@dataclass(frozen=True)
class Actor:
    """The operator on whose behalf a request runs."""

    id: int
    name: str


def _extract_key(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> str | None:
    """Read the key from ``Authorization: Bearer ...`` or ``X-API-Key``."""
    if x_api_key:
        return x_api_key.strip()
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1].strip()
    return None


def require_actor(
    db: Session = Depends(get_db),
    token: str | None = Depends(_extract_key),
) -> Actor:
    """Validate the API key and return the active user it belongs to."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("NO_API_KEY", "API key required."),
        )

    key = find_valid_key(db, token)
    if key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("UNAUTHORIZED", "Invalid or expired API key"),
        )

    user = db.get(User, key.user_id)
    if user is None or not user.is_active:
        logger.warning("API key used by inactive user", extra={"api_key_id": key.id, "user_id": key.user_id})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=error_response("USER_INACTIVE", "User is not active."),
        )

    key.last_used_at = utcnow()
    db.commit()
    return Actor(id=user.id, name=user.name)


__all__ = ["Actor", "require_actor"]
