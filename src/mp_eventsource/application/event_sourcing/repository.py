"""Application event sourcing – EventRepository port."""

from __future__ import annotations

import abc
import dataclasses
from collections.abc import Mapping
from typing import Any, Callable, Generic, TypeVar

from mp_eventsource.application.event_sourcing.entity import EventEntity
from mp_eventsource.application.event_sourcing.event import Event
from mp_eventsource.application.pagination import (
    Page,
    PageRequest,
    PaginatedQueryResult,
    SearchResult,
)

TEntity = TypeVar("TEntity", bound=EventEntity[Any])

SortSpec = Mapping[str, int]


class EventRepository(Generic[TEntity], abc.ABC):
    """Port: moves events and precomputed state between entities and a store.

    Repositories never run business logic.  They read event logs back into
    fresh entities (state is always re-derived client side) and write the
    pending events plus the state the entity already computed.

    Concrete implementations live in ``adapters/mongodb``.
    """

    def __init__(self, entity_factory: Callable[[], TEntity]) -> None:
        self._entity_factory = entity_factory

    @abc.abstractmethod
    async def find_by_id(self, id: Any) -> TEntity | None:  # noqa: A002
        """Rebuild the entity from its stored events; ``None`` when absent."""

    @abc.abstractmethod
    async def save(self, entity: TEntity) -> TEntity:
        """Persist pending events and state, then confirm the events."""

    @abc.abstractmethod
    async def exist_by(self, query: Mapping[str, Any]) -> bool:
        """Return whether a stored entity matches *query*."""

    @abc.abstractmethod
    async def _run_paginated_query(
        self,
        query: Mapping[str, Any],
        page: int,
        size: int,
        sort: SortSpec | None = None,
    ) -> PaginatedQueryResult:
        """Return one page of ``{"events": [...]}`` documents matching *query*."""

    # ------------------------------------------------------------------
    # Hydration & search
    # ------------------------------------------------------------------

    def _event_from_document(self, doc: dict[str, Any]) -> Event:
        return Event.from_document(doc)

    def _hydrate(self, document: Mapping[str, Any]) -> TEntity:
        """Build a fresh entity from a stored ``{"_id", "events"}`` document.

        The stored ``_id`` becomes the entity id unless the replayed state
        already carries one.
        """
        entity = self._entity_factory()
        entity.set_persisted_events(self._event_from_document(doc) for doc in document.get("events", ()))
        if entity.id is None and document.get("_id") is not None:
            entity.id = document["_id"]
        return entity

    def _state_to_document(self, state: Any) -> dict[str, Any]:
        """Convert a computed state value into a BSON-compatible dict."""
        if dataclasses.is_dataclass(state) and not isinstance(state, type):
            return dataclasses.asdict(state)
        if isinstance(state, Mapping):
            return dict(state)
        to_dict = getattr(state, "to_dict", None)
        if callable(to_dict):
            return dict(to_dict())
        raise TypeError(f"Cannot store state of type {type(state).__name__!r}")

    @staticmethod
    def _page_window(page: int, size: int) -> tuple[int, int]:
        """Return ``(skip, limit)`` for a 1-based *page* of *size* items."""
        if page < 1:
            raise ValueError("page must be >= 1")
        if size < 1:
            raise ValueError("size must be >= 1")
        return (page - 1) * size, size

    async def search(
        self,
        query: Mapping[str, Any],
        page: int = 1,
        size: int = 20,
        sort: SortSpec | None = None,
    ) -> SearchResult[TEntity]:
        """Run a paginated query and hydrate every returned document."""
        result = await self._run_paginated_query(query, page, size, sort)
        entities = [self._hydrate(doc) for doc in result.documents]
        return SearchResult(
            entities=entities,
            count=result.count,
            range=result.range,
            total=result.total,
        )

    async def search_page(self, query: Mapping[str, Any], request: PageRequest) -> Page[TEntity]:
        """:meth:`search` driven by a :class:`PageRequest`."""
        result = await self.search(query, request.page, request.size, request.sort_spec() or None)
        return Page.from_search(result, request)


__all__ = ["EventRepository", "SortSpec"]
