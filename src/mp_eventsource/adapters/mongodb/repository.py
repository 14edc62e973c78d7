"""MongoDB adapter — MongoEventRepository (one document per entity)."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Callable, Generic

from pymongo import InsertOne, UpdateOne

from mp_eventsource.adapters.mongodb.ids import ObjectIdCodec
from mp_eventsource.adapters.mongodb.uow import run_in_transaction
from mp_eventsource.application.event_sourcing.repository import EventRepository, SortSpec, TEntity
from mp_eventsource.application.pagination import PaginatedQueryResult, ResultRange
from mp_eventsource.kernel.types import IdentifierCodec
from mp_eventsource.observability.logging import get_logger


def mongo_sort(sort: SortSpec | None) -> list[tuple[str, int]] | None:
    """Translate a ``{field: 1 | -1}`` mapping into a pymongo sort list."""
    return list(sort.items()) if sort else None


class MongoEventRepository(EventRepository[TEntity]):
    """Event repository storing each entity as a single document::

        {"_id": <id>, "events": [<event>, ...], "state": {...}}

    ``events`` is the append-only source of truth; ``state`` is a cached
    projection that is overwritten on every write and never read back
    (entities are always rebuilt by replaying ``events``).  A state ``id``
    field left empty is filled with the document key, so ``state.id``
    stays queryable.

    Updates carry no concurrency token: two writers updating the same entity
    both get their events appended, while the last ``state`` written wins.

    Usage::

        repo = MongoEventRepository(db.people, Person)
        person = Person.create("a@x.com")
        await repo.save(person)
        same = await repo.find_by_id(person.id)
    """

    def __init__(
        self,
        collection: Any,
        entity_factory: Callable[[], TEntity],
        *,
        id_codec: IdentifierCodec | None = None,
    ) -> None:
        super().__init__(entity_factory)
        self._col = collection
        self._ids: IdentifierCodec = id_codec or ObjectIdCodec()
        self._log = get_logger(__name__, collection=getattr(collection, "name", None))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_by_id(self, id: Any) -> TEntity | None:  # noqa: A002
        if not self._ids.is_valid(id):
            self._log.debug("event_repository.invalid_id", id=str(id))
            return None
        doc = await self._col.find_one({"_id": self._ids.to_id(id)}, projection={"events": 1})
        if doc is None:
            return None
        return self._hydrate(doc)

    async def exist_by(self, query: Mapping[str, Any]) -> bool:
        return await self._col.count_documents(dict(query), limit=1) > 0

    async def _run_paginated_query(
        self,
        query: Mapping[str, Any],
        page: int,
        size: int,
        sort: SortSpec | None = None,
    ) -> PaginatedQueryResult:
        skip, limit = self._page_window(page, size)
        total = await self._col.count_documents(dict(query))
        if total == 0:
            return PaginatedQueryResult.empty()

        cursor = self._col.find(
            dict(query),
            projection={"events": 1},
            skip=skip,
            limit=limit,
            sort=mongo_sort(sort),
        )
        documents = await cursor.to_list(length=limit)
        count = len(documents)
        return PaginatedQueryResult(
            documents=documents,
            count=count,
            range=ResultRange(skip, skip + count),
            total=total,
        )

    # ------------------------------------------------------------------
    # Single-entity writes
    # ------------------------------------------------------------------

    async def save(self, entity: TEntity, session: Any = None) -> TEntity:
        """Create the entity's document, or append to it when it exists."""
        await self._persist(entity, session)
        entity.confirm_events()
        return entity

    async def _persist(self, entity: TEntity, session: Any) -> None:
        if entity.is_new:
            await self._create(entity, self._assign_key(entity), session)
            return
        key = self._ids.to_id(entity.id)
        if await self._col.count_documents({"_id": key}, limit=1, session=session):
            await self._col.update_one({"_id": key}, self._update_operation(entity, key), session=session)
            self._log.debug("event_repository.updated", id=str(key), events=len(entity.pending_events))
        else:
            await self._create(entity, key, session)

    async def _create(self, entity: TEntity, key: Any, session: Any) -> None:
        await self._col.insert_one(self._insert_document(entity, key), session=session)
        self._log.debug("event_repository.created", id=str(key), events=len(entity.pending_events))

    # ------------------------------------------------------------------
    # Bulk writes
    # ------------------------------------------------------------------

    async def bulk_update(self, entities: Iterable[TEntity], session: Any = None) -> list[TEntity]:
        """Append pending events and overwrite state for existing entities.

        There is no existence check: an entity whose document is missing is
        silently skipped by MongoDB.  Entities without pending events are
        left out of the batch.
        """
        entities = list(entities)
        dirty = await self._bulk_update(entities, session)
        for entity in dirty:
            entity.confirm_events()
        return entities

    async def bulk_insert(self, entities: Iterable[TEntity], session: Any = None) -> list[TEntity]:
        """Insert one document per entity that has pending events."""
        entities = list(entities)
        dirty = await self._bulk_insert(entities, session)
        for entity in dirty:
            entity.confirm_events()
        return entities

    async def _bulk_update(self, entities: Sequence[TEntity], session: Any) -> list[TEntity]:
        dirty = [e for e in entities if e.has_pending_events]
        operations = [self._update_request(e) for e in dirty]
        await self._bulk_write(operations, session, "event_repository.bulk_update")
        return dirty

    async def _bulk_insert(self, entities: Sequence[TEntity], session: Any) -> list[TEntity]:
        dirty = [e for e in entities if e.has_pending_events]
        operations = [InsertOne(self._insert_document(e, self._assign_key(e))) for e in dirty]
        await self._bulk_write(operations, session, "event_repository.bulk_insert")
        return dirty

    async def _bulk_write(self, operations: list[Any], session: Any, event: str) -> None:
        if not operations:
            return
        await self._col.bulk_write(operations, ordered=True, session=session)
        self._log.debug(event, operations=len(operations))

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def with_session(self, session: Any) -> "MongoSessionRepository[TEntity]":
        """Return writes bound to *session*, each run in its own transaction."""
        return MongoSessionRepository(self, session)

    # ------------------------------------------------------------------
    # Document helpers
    # ------------------------------------------------------------------

    def _assign_key(self, entity: TEntity) -> Any:
        if entity.is_new:
            entity.id = self._ids.generate()
        return self._ids.to_id(entity.id)

    def _insert_document(self, entity: TEntity, key: Any) -> dict[str, Any]:
        return {
            "_id": key,
            "events": [e.to_document() for e in entity.pending_events],
            "state": self._state_projection(entity, key),
        }

    def _update_operation(self, entity: TEntity, key: Any) -> dict[str, Any]:
        return {
            "$set": {"state": self._state_projection(entity, key)},
            "$push": {"events": {"$each": [e.to_document() for e in entity.pending_events]}},
        }

    def _update_request(self, entity: TEntity) -> UpdateOne:
        key = self._ids.to_id(entity.id)
        return UpdateOne({"_id": key}, self._update_operation(entity, key))

    def _state_projection(self, entity: TEntity, key: Any) -> dict[str, Any]:
        state = self._state_to_document(entity.state)
        if "id" in state and state["id"] is None:
            state["id"] = key
        return state


class MongoSessionRepository(Generic[TEntity]):
    """Writes of a :class:`MongoEventRepository` bound to one client session.

    Every call runs in a transaction: commit on success, abort and re-raise
    on failure.  Events are confirmed only once the commit went through, so
    an aborted call leaves the entities' pending events in place for a retry.
    """

    def __init__(self, repository: MongoEventRepository[TEntity], session: Any) -> None:
        self._repo = repository
        self._session = session

    async def save(self, entity: TEntity) -> TEntity:
        await run_in_transaction(self._session, lambda: self._repo._persist(entity, self._session))
        entity.confirm_events()
        return entity

    async def bulk_update(self, entities: Iterable[TEntity]) -> list[TEntity]:
        entities = list(entities)
        dirty = await run_in_transaction(
            self._session, lambda: self._repo._bulk_update(entities, self._session)
        )
        for entity in dirty:
            entity.confirm_events()
        return entities

    async def bulk_insert(self, entities: Iterable[TEntity]) -> list[TEntity]:
        entities = list(entities)
        dirty = await run_in_transaction(
            self._session, lambda: self._repo._bulk_insert(entities, self._session)
        )
        for entity in dirty:
            entity.confirm_events()
        return entities


__all__ = ["MongoEventRepository", "MongoSessionRepository", "mongo_sort"]
