"""Identifier value objects and the codec port repositories key documents with."""

from __future__ import annotations

import dataclasses
import uuid
from typing import Any, Protocol

from mp_eventsource.kernel.errors.domain import InvalidIdentifierError, ValidationError


@dataclasses.dataclass(frozen=True, slots=True)
class EntityId:
    """String entity identifier.

    Examples::

        eid = EntityId.generate()      # new random id
        eid = EntityId("person-42")    # from an existing string
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValidationError("EntityId must not be empty")

    def __str__(self) -> str:
        return self.value

    @classmethod
    def generate(cls) -> "EntityId":
        """Return a new random ``EntityId``."""
        return cls(str(uuid.uuid4()))


class IdentifierCodec(Protocol):
    """Port: validates and builds the identifiers a store keys documents by."""

    def is_valid(self, value: Any) -> bool: ...
    def to_id(self, value: Any) -> Any: ...
    def generate(self) -> Any: ...


class StringIdCodec:
    """Codec for stores keyed by plain strings.

    Accepts non-empty strings and :class:`EntityId` instances; both are
    stored as ``str``.
    """

    def is_valid(self, value: Any) -> bool:
        if isinstance(value, EntityId):
            return True
        return isinstance(value, str) and bool(value)

    def to_id(self, value: Any) -> str:
        if not self.is_valid(value):
            raise InvalidIdentifierError(value)
        return str(value)

    def generate(self) -> str:
        return EntityId.generate().value


__all__ = ["EntityId", "IdentifierCodec", "StringIdCodec"]
