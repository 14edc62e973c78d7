"""Application event sourcing – Reducer.

A reducer is the registry of commit functions for one entity type.  Each
commit function maps ``(prior_state, event)`` to the next state; replaying a
log is a strict left fold over it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from mp_eventsource.application.event_sourcing.event import Event, event_name
from mp_eventsource.kernel.errors import ReducerRegistrationError, UnknownEventTypeError

TState = TypeVar("TState")

CommitFunction = Callable[[TState, Event], TState]


def _kind_names(kinds: type[Enum] | Iterable[str | Enum]) -> set[str]:
    return {event_name(kind) for kind in kinds}


class Reducer(Generic[TState]):
    """Dispatch table from event name to commit function.

    The table is fixed at construction.  Pass *kinds* (an ``Enum`` class or
    an iterable of names) to have every declared event kind checked for a
    commit function up front; a gap raises
    :class:`~mp_eventsource.kernel.errors.ReducerRegistrationError` here
    instead of surfacing on the first replay that hits it.

    Example::

        reducer = Reducer[PersonState](
            {
                PersonEvent.CREATED: on_created,
                PersonEvent.EMAIL_CHANGED: on_email_changed,
            },
            kinds=PersonEvent,
        )
        state = reducer.reduce(PersonState(), events)
    """

    def __init__(
        self,
        commits: Mapping[str | Enum, CommitFunction[TState]],
        *,
        kinds: type[Enum] | Iterable[str | Enum] | None = None,
    ) -> None:
        self._commits: dict[str, CommitFunction[TState]] = {
            event_name(name): fn for name, fn in commits.items()
        }
        if kinds is not None:
            missing = _kind_names(kinds) - self._commits.keys()
            if missing:
                raise ReducerRegistrationError(missing)

    @property
    def known_events(self) -> frozenset[str]:
        return frozenset(self._commits)

    def __contains__(self, name: Any) -> bool:
        return isinstance(name, (str, Enum)) and event_name(name) in self._commits

    def apply(self, state: TState, event: Event) -> TState:
        """Run the commit function registered for *event*."""
        try:
            commit = self._commits[event.name]
        except KeyError:
            raise UnknownEventTypeError(event.name) from None
        return commit(state, event)

    def reduce(self, initial: TState, events: Iterable[Event]) -> TState:
        """Fold *events* over *initial*, in order."""
        state = initial
        for event in events:
            state = self.apply(state, event)
        return state


__all__ = ["CommitFunction", "Reducer"]
