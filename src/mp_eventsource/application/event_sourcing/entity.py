"""Application event sourcing – EventEntity aggregate root."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Callable, Generic, TypeVar

from mp_eventsource.application.event_sourcing.event import Event
from mp_eventsource.application.event_sourcing.reducer import Reducer

TState = TypeVar("TState")


class EventEntity(Generic[TState]):
    """Aggregate root whose state is the fold of its event log.

    The log is split in two: ``persisted_events`` mirrors what the store
    holds and ``pending_events`` holds events appended locally that no
    repository has written yet.  :attr:`state` always equals
    ``reducer.reduce(initial_state(), persisted_events + pending_events)``.

    Business code never assigns state; it pushes events.  Concrete entities
    pass their reducer and zero-value factory from a no-argument
    ``__init__`` so repositories can build empty instances::

        @dataclasses.dataclass(frozen=True)
        class PersonState:
            id: str | None = None
            email: str | None = None

        class Person(EventEntity[PersonState]):
            def __init__(self) -> None:
                super().__init__(PERSON_REDUCER, PersonState)

            @classmethod
            def create(cls, id: str, email: str) -> "Person":
                person = cls()
                person.push_new_events([Event(PersonEvent.CREATED, {"id": id, "email": email})])
                return person
    """

    def __init__(self, reducer: Reducer[TState], initial_state: Callable[[], TState]) -> None:
        self._reducer = reducer
        self._initial_state = initial_state
        self._persisted: list[Event] = []
        self._pending: list[Event] = []
        self._id: Any = None
        self._state: TState = self._recompute()

    # ------------------------------------------------------------------
    # Event lists
    # ------------------------------------------------------------------

    @property
    def persisted_events(self) -> tuple[Event, ...]:
        return tuple(self._persisted)

    @property
    def pending_events(self) -> tuple[Event, ...]:
        return tuple(self._pending)

    @property
    def events(self) -> tuple[Event, ...]:
        """The full replay log: persisted events, then pending ones."""
        return (*self._persisted, *self._pending)

    @property
    def has_pending_events(self) -> bool:
        return bool(self._pending)

    def push_new_events(self, events: Iterable[Event]) -> None:
        """Append *events* to the pending list and recompute state.

        Raises :class:`~mp_eventsource.kernel.errors.UnknownEventTypeError`
        (leaving the entity untouched) if any event has no commit function.
        """
        pending = [*self._pending, *events]
        self._state = self._recompute(self._persisted, pending)
        self._pending = pending

    def set_persisted_events(self, events: Iterable[Event]) -> None:
        """Replace the persisted log (hydration from storage) and recompute state."""
        persisted = list(events)
        self._state = self._recompute(persisted, self._pending)
        self._persisted = persisted

    def confirm_events(self) -> None:
        """Promote pending events to persisted.

        Cached state is left alone: both lists already contributed to it.
        """
        self._persisted.extend(self._pending)
        self._pending = []

    # ------------------------------------------------------------------
    # State & identity
    # ------------------------------------------------------------------

    @property
    def state(self) -> TState:
        return self._state

    @property
    def id(self) -> Any:
        """Assigned id, else the ``id`` carried by the current state."""
        if self._id is not None:
            return self._id
        if isinstance(self._state, Mapping):
            return self._state.get("id")
        return getattr(self._state, "id", None)

    @id.setter
    def id(self, value: Any) -> None:
        self._id = value

    @property
    def is_new(self) -> bool:
        return self.id is None

    def _recompute(
        self,
        persisted: Iterable[Event] = (),
        pending: Iterable[Event] = (),
    ) -> TState:
        return self._reducer.reduce(self._initial_state(), [*persisted, *pending])

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"{type(self).__name__}(id={self.id!r}, "
            f"persisted={len(self._persisted)}, pending={len(self._pending)})"
        )


__all__ = ["EventEntity"]
