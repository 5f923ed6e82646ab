"""Engine error taxonomy and standardized error responses."""
from __future__ import annotations

from decimal import Decimal
from typing import Any

GENERIC_FAILURE_MESSAGE = "Operation failed, no changes were made."


def error_response(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return a standardized error payload."""

    payload: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details:
        payload["error"]["details"] = details
    return payload


class EngineError(Exception):
    """Base class for every failure raised by the audit/ledger engine."""

    code = "ENGINE_ERROR"
    status_code = 500
    # Expected errors carry a message the caller may show as-is.
    expected = False

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def user_message(self) -> str:
        return self.message if self.expected else GENERIC_FAILURE_MESSAGE

    def to_response(self) -> dict[str, Any]:
        if self.expected:
            return error_response(self.code, self.message, self.details)
        return error_response(self.code, GENERIC_FAILURE_MESSAGE)


class ValidationError(EngineError):
    code = "VALIDATION_ERROR"
    status_code = 400
    expected = True


class LedgerImbalance(ValidationError):
    """Raised when the debit and credit totals of a journal entry differ."""

    code = "LEDGER_IMBALANCE"

    def __init__(self, total_debit: Decimal, total_credit: Decimal) -> None:
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            f"Journal entry is unbalanced: debits ({total_debit:.2f}) "
            f"do not equal credits ({total_credit:.2f})",
            details={"total_debit": str(total_debit), "total_credit": str(total_credit)},
        )


class NotFoundError(EngineError):
    code = "NOT_FOUND"
    status_code = 404
    expected = True


class PermissionDeniedError(EngineError):
    code = "PERMISSION_DENIED"
    status_code = 403
    expected = True


class PersistenceError(EngineError):
    code = "PERSISTENCE_ERROR"


class AuditFailure(EngineError):
    code = "AUDIT_FAILURE"


__all__ = [
    "GENERIC_FAILURE_MESSAGE",
    "error_response",
    "EngineError",
    "ValidationError",
    "LedgerImbalance",
    "NotFoundError",
    "PermissionDeniedError",
    "PersistenceError",
    "AuditFailure",
]
