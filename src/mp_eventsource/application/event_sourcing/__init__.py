"""Application – Event Sourcing."""

from mp_eventsource.application.event_sourcing.entity import EventEntity
from mp_eventsource.application.event_sourcing.event import Event, SegregatedEvent, event_name
from mp_eventsource.application.event_sourcing.reducer import CommitFunction, Reducer
from mp_eventsource.application.event_sourcing.repository import EventRepository, SortSpec

__all__ = [
    "CommitFunction",
    "Event",
    "EventEntity",
    "EventRepository",
    "Reducer",
    "SegregatedEvent",
    "SortSpec",
    "event_name",
]
