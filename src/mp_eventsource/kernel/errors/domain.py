"""Domain errors — programming mistakes and rejected inputs."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from mp_eventsource.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a domain rule is violated."""

    default_code = "domain_error"


class ValidationError(DomainError):
    """Input data does not meet validation rules."""

    default_code = "validation_error"


class InvalidIdentifierError(ValidationError):
    """An identifier is not well-formed for the target store.

    Lookups never raise this; they report the entity as absent instead.
    Writes raise it because a document cannot be keyed by a malformed id.
    """

    default_code = "invalid_identifier"

    def __init__(self, identifier: Any, **kwargs: Any) -> None:
        super().__init__(
            f"'{identifier}' is not a valid identifier",
            detail={"identifier": str(identifier)},
            **kwargs,
        )
        self.identifier = identifier


class UnknownEventTypeError(DomainError):
    """No commit function is registered for an event being replayed.

    Signals a missing registration. It must propagate: skipping the event
    would silently produce a state that does not match the log.
    """

    default_code = "unknown_event_type"

    def __init__(self, event_name: str, **kwargs: Any) -> None:
        super().__init__(
            f"No commit function registered for event '{event_name}'",
            detail={"event_name": event_name},
            **kwargs,
        )
        self.event_name = event_name


class ReducerRegistrationError(DomainError):
    """A reducer was declared with event kinds it has no commit function for."""

    default_code = "reducer_registration"

    def __init__(self, missing: Iterable[str], **kwargs: Any) -> None:
        self.missing: tuple[str, ...] = tuple(sorted(missing))
        super().__init__(
            "Missing commit functions for: " + ", ".join(self.missing),
            detail={"missing": list(self.missing)},
            **kwargs,
        )


__all__ = [
    "DomainError",
    "InvalidIdentifierError",
    "ReducerRegistrationError",
    "UnknownEventTypeError",
    "ValidationError",
]
