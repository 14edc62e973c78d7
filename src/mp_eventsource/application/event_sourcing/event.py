"""Application event sourcing – Event and SegregatedEvent."""

from __future__ import annotations

import dataclasses
from datetime import datetime
from enum import Enum
from typing import Any

from mp_eventsource.kernel.time import Clock, SystemClock, utc_now

_SYSTEM_CLOCK = SystemClock()


def bson_precision(timestamp: datetime) -> datetime:
    """Truncate *timestamp* to the milliseconds a BSON datetime keeps."""
    return timestamp.replace(microsecond=timestamp.microsecond // 1000 * 1000)


def event_name(name: str | Enum) -> str:
    """Normalise an event name; ``Enum`` members map to their value."""
    if isinstance(name, Enum):
        return str(name.value)
    return name


@dataclasses.dataclass(frozen=True)
class Event:
    """An immutable, named fact.

    ``data`` is opaque to the library: commit functions interpret it, the
    repositories store it as-is (so it must be BSON-encodable to reach
    MongoDB).  Events have no id of their own; an event is identified by its
    position in the owning entity's log.  Timestamps are kept at millisecond
    precision so a stored event replays to the same state.

    Example::

        class PersonEvent(str, Enum):
            CREATED = "person-was-created"

        Event(PersonEvent.CREATED, {"email": "a@x.com"})
    """

    name: str
    data: Any = None
    timestamp: datetime = dataclasses.field(default_factory=utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", event_name(self.name))
        object.__setattr__(self, "timestamp", bson_precision(self.timestamp))

    @classmethod
    def create(cls, name: str | Enum, data: Any = None, *, clock: Clock | None = None) -> "Event":
        """Build an event stamped by *clock* (system time when omitted)."""
        return cls(name, data, (clock or _SYSTEM_CLOCK).now())

    def to_document(self) -> dict[str, Any]:
        return {"name": self.name, "data": self.data, "timestamp": self.timestamp}

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Event":
        return cls(name=doc["name"], data=doc.get("data"), timestamp=doc["timestamp"])


@dataclasses.dataclass(frozen=True)
class SegregatedEvent(Event):
    """An event row of the segregated event collection.

    ``entity_id`` tags the owning entity and ``sequence`` is the event's
    0-based position in that entity's log.
    """

    entity_id: Any = None
    sequence: int = 0

    def to_document(self) -> dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "sequence": self.sequence,
            **super().to_document(),
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "SegregatedEvent":
        return cls(
            name=doc["name"],
            data=doc.get("data"),
            timestamp=doc["timestamp"],
            entity_id=doc.get("entity_id"),
            sequence=doc.get("sequence", 0),
        )

    @classmethod
    def tag(cls, event: Event, entity_id: Any, sequence: int) -> "SegregatedEvent":
        """Attach ownership and position to a plain event."""
        return cls(
            name=event.name,
            data=event.data,
            timestamp=event.timestamp,
            entity_id=entity_id,
            sequence=sequence,
        )


__all__ = ["Event", "SegregatedEvent", "bson_precision", "event_name"]
