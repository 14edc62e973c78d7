"""MongoDB adapter — MongoUnitOfWork and run_in_transaction."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

from mp_eventsource.observability.logging import get_logger

T = TypeVar("T")

_log = get_logger(__name__)


class MongoUnitOfWork:
    """Transaction scope over a caller-owned **motor** client session.

    Entering starts a transaction; leaving commits it, or aborts it when the
    block raised (the exception keeps propagating).  The session is not
    ended here: whoever started it closes it.

    Multi-document transactions need a replica set or sharded cluster.

    Usage::

        async with await client.start_session() as session:
            async with MongoUnitOfWork(session):
                await repo.bulk_insert(people, session=session)
    """

    def __init__(self, session: Any) -> None:
        self.session = session

    async def __aenter__(self) -> "MongoUnitOfWork":
        self.session.start_transaction()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if exc_type is None:
            await self.commit()
        else:
            _log.warning("mongo_transaction.aborted", error=repr(exc_val))
            await self.rollback()

    async def commit(self) -> None:
        """Commit the active MongoDB transaction."""
        await self.session.commit_transaction()

    async def rollback(self) -> None:
        """Abort the active MongoDB transaction, undoing its writes."""
        await self.session.abort_transaction()


async def run_in_transaction(session: Any, fn: Callable[[], Awaitable[T]]) -> T:
    """Await ``fn()`` inside a transaction on *session* and return its result."""
    async with MongoUnitOfWork(session):
        return await fn()


__all__ = ["MongoUnitOfWork", "run_in_transaction"]
