"""MongoDB adapter — ObjectIdCodec."""

from __future__ import annotations

from typing import Any

from bson import ObjectId

from mp_eventsource.kernel.errors import InvalidIdentifierError


class ObjectIdCodec:
    """Identifier codec for ``_id`` fields holding ``bson.ObjectId`` values.

    Accepts ``ObjectId`` instances and their 24-character hex form.
    """

    def is_valid(self, value: Any) -> bool:
        return value is not None and ObjectId.is_valid(value)

    def to_id(self, value: Any) -> ObjectId:
        if isinstance(value, ObjectId):
            return value
        if not self.is_valid(value):
            raise InvalidIdentifierError(value)
        return ObjectId(value)

    def generate(self) -> ObjectId:
        return ObjectId()


__all__ = ["ObjectIdCodec"]
