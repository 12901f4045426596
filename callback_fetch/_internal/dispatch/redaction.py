"""Redaction of sensitive values in debug output."""

from collections.abc import Mapping
from typing import Any

REDACT_KEYS: frozenset[str] = frozenset({
    "api_key",
    "token",
    "secret",
    "password",
    "access_key",
    "refresh_token",
    "authorization",
    "auth_token",
    "private_key",
    "secret_key",
    "credentials",
})

REDACT_HEADERS: frozenset[str] = frozenset({
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
})

REDACTED_VALUE = "[REDACTED]"


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy headers with sensitive values replaced by "[REDACTED]"."""
    return {
        key: REDACTED_VALUE if key.lower() in REDACT_HEADERS else value
        for key, value in headers.items()
    }


def redact_payload(payload: Any) -> Any:
    """Recursively redact sensitive keys from a JSON-like value.

    Creates a copy - the original payload is never mutated.
    """
    if isinstance(payload, dict):
        result = {}
        for key, value in payload.items():
            key_lower = key.lower() if isinstance(key, str) else key
            if key_lower in REDACT_KEYS:
                result[key] = REDACTED_VALUE
            else:
                result[key] = redact_payload(value)
        return result
    elif isinstance(payload, list):
        return [redact_payload(item) for item in payload]
    else:
        return payload
