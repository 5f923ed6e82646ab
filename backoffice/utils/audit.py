"""Masking helpers applied to audit snapshots before they are persisted."""
from __future__ import annotations

from typing import Any, Mapping

ACCOUNT_KEYS = {"account_number", "iban", "card_number", "bank_account"}
SECRET_KEYS = {"password", "password_hash", "key_hash", "secret", "token"}
CONTACT_KEYS = {"email", "phone", "mobile"}

SENSITIVE_KEYS = ACCOUNT_KEYS | SECRET_KEYS | CONTACT_KEYS


def _mask_value(key: str, value: Any) -> Any:
    if value is None:
        return None

    if key in SECRET_KEYS:
        return "***"

    if key in ACCOUNT_KEYS:
        stripped = str(value).replace(" ", "")
        if len(stripped) <= 4:
            return f"***{stripped}"
        return f"***{stripped[-4:]}"

    if key == "email":
        text = str(value)
        if "@" in text:
            _, domain = text.split("@", 1)
            return f"***@{domain}"
        return "***"

    if key in {"phone", "mobile"}:
        digits = "".join(ch for ch in str(value) if ch.isdigit())
        return f"***{digits[-2:]}" if digits else "***"

    return value


def sanitize_payload_for_audit(data: Any) -> Any:
    """Return a copy of ``data`` with obvious PII and secrets masked."""

    if isinstance(data, Mapping):
        sanitized: dict[str, Any] = {}
        for key, value in data.items():
            masked_value = _mask_value(key, value) if key in SENSITIVE_KEYS else value
            sanitized[key] = sanitize_payload_for_audit(masked_value)
        return sanitized

    if isinstance(data, list):
        return [sanitize_payload_for_audit(item) for item in data]

    return data


__all__ = ["SENSITIVE_KEYS", "sanitize_payload_for_audit"]
