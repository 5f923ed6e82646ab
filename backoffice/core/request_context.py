"""Ambient request context (caller address and user agent).

The HTTP layer binds a :class:`RequestContext` for the duration of each
request; scheduled jobs and scripts run without one and the audit trail
records the configured placeholder instead.
"""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Callable, Iterator

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from backoffice.config import get_settings

FORWARDED_FOR_HEADER = "X-Forwarded-For"
REAL_IP_HEADER = "X-Real-IP"
USER_AGENT_HEADER = "User-Agent"
MAX_AGENT_LENGTH = 255


@dataclass(frozen=True)
class RequestContext:
    caller_address: str
    caller_agent: str


_request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


def _placeholder() -> RequestContext:
    value = get_settings().AUDIT_CONTEXT_PLACEHOLDER
    return RequestContext(caller_address=value, caller_agent=value)


def current_request_context() -> RequestContext:
    """Return the bound context, or placeholders outside of a request."""

    ctx = _request_context.get()
    return ctx if ctx is not None else _placeholder()


@contextmanager
def request_context(
    caller_address: str | None = None, caller_agent: str | None = None
) -> Iterator[RequestContext]:
    """Bind a request context for the enclosed block."""

    fallback = _placeholder()
    ctx = RequestContext(
        caller_address=caller_address or fallback.caller_address,
        caller_agent=(caller_agent or fallback.caller_agent)[:MAX_AGENT_LENGTH],
    )
    token = _request_context.set(ctx)
    try:
        yield ctx
    finally:
        _request_context.reset(token)


def caller_address_from_request(request: Request) -> str | None:
    forwarded = request.headers.get(FORWARDED_FOR_HEADER)
    if forwarded:
        # Left-most entry is the originating client.
        return forwarded.split(",", 1)[0].strip() or None
    real_ip = request.headers.get(REAL_IP_HEADER)
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind caller address and user agent for the lifetime of each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        with request_context(
            caller_address=caller_address_from_request(request),
            caller_agent=request.headers.get(USER_AGENT_HEADER),
        ):
            return await call_next(request)


__all__ = [
    "RequestContext",
    "RequestContextMiddleware",
    "caller_address_from_request",
    "current_request_context",
    "request_context",
]
