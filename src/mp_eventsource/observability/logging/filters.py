"""Observability – SensitiveFieldsFilter."""
from __future__ import annotations

from typing import Any

DEFAULT_SENSITIVE_FIELDS: frozenset[str] = frozenset(
    {"password", "secret", "token", "api_key", "authorization", "mongo_uri", "uri"}
)


class SensitiveFieldsFilter:
    """Replace values of sensitive keys with ``[REDACTED]``.

    Connection strings carry credentials, so ``mongo_uri`` is redacted by
    default alongside the usual secrets.
    """

    REDACTED = "[REDACTED]"

    def __init__(self, sensitive_fields: frozenset[str] | None = None) -> None:
        self._fields = frozenset(f.lower() for f in (sensitive_fields or DEFAULT_SENSITIVE_FIELDS))

    def redact(self, data: dict[str, Any]) -> dict[str, Any]:
        """Recursively redact nested dicts."""
        result: dict[str, Any] = {}
        for k, v in data.items():
            if k.lower() in self._fields:
                result[k] = self.REDACTED
            elif isinstance(v, dict):
                result[k] = self.redact(v)
            else:
                result[k] = v
        return result

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:  # noqa: ARG002
        """structlog processor entry point."""
        return self.redact(event_dict)


__all__ = ["DEFAULT_SENSITIVE_FIELDS", "SensitiveFieldsFilter"]
