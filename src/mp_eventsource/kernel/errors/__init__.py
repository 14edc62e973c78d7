"""Kernel error hierarchy — public re-export surface.

Hierarchy::

    BaseError
    └── DomainError              (domain.py)
        ├── ValidationError
        │   └── InvalidIdentifierError
        ├── UnknownEventTypeError
        └── ReducerRegistrationError

Storage failures are not wrapped: driver exceptions (``pymongo.errors``)
reach the caller unchanged.
"""

from mp_eventsource.kernel.errors.base import BaseError
from mp_eventsource.kernel.errors.domain import (
    DomainError,
    InvalidIdentifierError,
    ReducerRegistrationError,
    UnknownEventTypeError,
    ValidationError,
)

__all__ = [
    "BaseError",
    "DomainError",
    "InvalidIdentifierError",
    "ReducerRegistrationError",
    "UnknownEventTypeError",
    "ValidationError",
]
