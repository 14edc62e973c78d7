"""Testing fakes – in-memory doubles for motor collections and sessions."""
from mp_eventsource.testing.fakes.clock import FakeClock
from mp_eventsource.testing.fakes.mongo import (
    FakeClientSession,
    FakeCursor,
    FakeWriteResult,
    InMemoryMongoCollection,
)

__all__ = [
    "FakeClientSession",
    "FakeClock",
    "FakeCursor",
    "FakeWriteResult",
    "InMemoryMongoCollection",
]
