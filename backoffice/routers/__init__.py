"""API routers for the back-office ledger service."""
from fastapi import APIRouter

from . import accounts, audit, expenses, health, journal


def get_api_router() -> APIRouter:
    """Return the root API router."""

    api_router = APIRouter()
    api_router.include_router(health.router)
    api_router.include_router(accounts.router)
    api_router.include_router(expenses.router)
    api_router.include_router(journal.router)
    api_router.include_router(audit.router)
    return api_router
