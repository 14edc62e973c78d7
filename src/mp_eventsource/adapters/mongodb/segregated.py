"""MongoDB adapter — SegregatedMongoEventRepository (events and state apart)."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any, Callable, Generic

from mp_eventsource.adapters.mongodb.ids import ObjectIdCodec
from mp_eventsource.adapters.mongodb.repository import mongo_sort
from mp_eventsource.adapters.mongodb.uow import run_in_transaction
from mp_eventsource.application.event_sourcing.event import SegregatedEvent
from mp_eventsource.application.event_sourcing.repository import EventRepository, SortSpec, TEntity
from mp_eventsource.application.pagination import PaginatedQueryResult, ResultRange
from mp_eventsource.kernel.types import IdentifierCodec
from mp_eventsource.observability.logging import get_logger


class SegregatedMongoEventRepository(EventRepository[TEntity]):
    """Event repository splitting the log and the projection in two collections.

    *event_collection* holds one row per event::

        {"entity_id": <id>, "sequence": 0, "name": ..., "data": ..., "timestamp": ...}

    *state_collection* holds one row per entity, the flattened state with its
    ``id`` field stored as ``_id``.  Entities are rebuilt from event rows
    only; state rows serve queries and pagination.

    Call :meth:`create_indexes` once on startup.  The unique
    ``(entity_id, sequence)`` index makes two writers appending at the same
    position fail with ``DuplicateKeyError`` instead of interleaving.
    """

    def __init__(
        self,
        state_collection: Any,
        event_collection: Any,
        entity_factory: Callable[[], TEntity],
        *,
        id_codec: IdentifierCodec | None = None,
    ) -> None:
        super().__init__(entity_factory)
        self._states = state_collection
        self._events = event_collection
        self._ids: IdentifierCodec = id_codec or ObjectIdCodec()
        self._log = get_logger(
            __name__,
            state_collection=getattr(state_collection, "name", None),
            event_collection=getattr(event_collection, "name", None),
        )

    # ------------------------------------------------------------------
    # Index management
    # ------------------------------------------------------------------

    @classmethod
    async def create_indexes(cls, event_collection: Any) -> None:
        """Create the unique ``(entity_id, sequence)`` index.

        Idempotent — safe to call repeatedly.
        """
        await event_collection.create_index(
            [("entity_id", 1), ("sequence", 1)],
            unique=True,
            name="idx_entity_sequence",
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _event_from_document(self, doc: dict[str, Any]) -> SegregatedEvent:
        return SegregatedEvent.from_document(doc)

    async def find_by_id(self, id: Any) -> TEntity | None:  # noqa: A002
        if not self._ids.is_valid(id):
            self._log.debug("event_repository.invalid_id", id=str(id))
            return None
        key = self._ids.to_id(id)
        cursor = self._events.find({"entity_id": key}, sort=[("sequence", 1)])
        events = await cursor.to_list(length=None)
        if not events:
            return None
        return self._hydrate({"_id": key, "events": events})

    async def has_events(self, query: Mapping[str, Any], session: Any = None) -> bool:
        return await self._events.count_documents(dict(query), limit=1, session=session) > 0

    async def has_state(self, query: Mapping[str, Any], session: Any = None) -> bool:
        return await self._states.count_documents(dict(query), limit=1, session=session) > 0

    async def exist_by(self, query: Mapping[str, Any]) -> bool:
        """True only when *query* matches both an event row and a state row."""
        has_events, has_state = await asyncio.gather(self.has_events(query), self.has_state(query))
        return has_events and has_state

    async def _run_paginated_query(
        self,
        query: Mapping[str, Any],
        page: int,
        size: int,
        sort: SortSpec | None = None,
    ) -> PaginatedQueryResult:
        skip, limit = self._page_window(page, size)
        total = await self._states.count_documents(dict(query))
        if total == 0:
            return PaginatedQueryResult.empty()

        states = await self._states.find(
            dict(query),
            projection={"_id": 1},
            skip=skip,
            limit=limit,
            sort=mongo_sort(sort),
        ).to_list(length=limit)
        entity_ids = [state["_id"] for state in states]

        grouped: dict[Any, list[dict[str, Any]]] = {entity_id: [] for entity_id in entity_ids}
        cursor = self._events.find({"entity_id": {"$in": entity_ids}}, sort=[("sequence", 1)])
        async for event in cursor:
            grouped.setdefault(event["entity_id"], []).append(event)

        documents = [
            {"_id": entity_id, "events": events} for entity_id, events in grouped.items() if events
        ]
        count = len(entity_ids)
        return PaginatedQueryResult(
            documents=documents,
            count=count,
            range=ResultRange(skip, skip + count),
            total=total,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save(self, entity: TEntity, force: bool = False, session: Any = None) -> TEntity:
        """Append pending events and upsert the state row.

        With *force*, every stored event of the entity is deleted and the
        full log (``entity.events``) is written again; use it to repair or
        migrate a stream, not for ordinary writes.
        """
        if await self._persist(entity, force, session):
            entity.confirm_events()
        return entity

    async def _persist(self, entity: TEntity, force: bool, session: Any) -> bool:
        if not force and not entity.has_pending_events:
            return False

        if entity.is_new:
            entity.id = self._ids.generate()
        key = self._ids.to_id(entity.id)

        if force:
            deleted = await self._events.delete_many({"entity_id": key}, session=session)
            events, start = entity.events, 0
            self._log.info(
                "event_repository.rebuilt",
                id=str(key),
                deleted=getattr(deleted, "deleted_count", None),
                events=len(events),
            )
        else:
            events, start = entity.pending_events, len(entity.persisted_events)

        rows = [SegregatedEvent.tag(e, key, start + i).to_document() for i, e in enumerate(events)]
        if rows:
            await self._events.insert_many(rows, ordered=True, session=session)

        state = self._state_row(entity)
        if await self.has_state({"_id": key}, session=session):
            await self._states.update_one({"_id": key}, {"$set": state}, session=session)
        else:
            await self._states.insert_one({"_id": key, **state}, session=session)
        self._log.debug("event_repository.saved", id=str(key), events=len(rows))
        return True

    def _state_row(self, entity: TEntity) -> dict[str, Any]:
        state = self._state_to_document(entity.state)
        state.pop("id", None)
        state.pop("_id", None)
        return state

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def with_session(self, session: Any) -> "SegregatedSessionRepository[TEntity]":
        """Return :meth:`save` bound to *session*, run in a transaction."""
        return SegregatedSessionRepository(self, session)


class SegregatedSessionRepository(Generic[TEntity]):
    """:meth:`SegregatedMongoEventRepository.save` bound to one client session."""

    def __init__(self, repository: SegregatedMongoEventRepository[TEntity], session: Any) -> None:
        self._repo = repository
        self._session = session

    async def save(self, entity: TEntity, force: bool = False) -> TEntity:
        written = await run_in_transaction(
            self._session, lambda: self._repo._persist(entity, force, self._session)
        )
        if written:
            entity.confirm_events()
        return entity


__all__ = ["SegregatedMongoEventRepository", "SegregatedSessionRepository"]
