"""MongoDB adapter — motor client and database from settings."""

from __future__ import annotations

from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient

from mp_eventsource.adapters.mongodb.settings import MongoEventStoreSettings


def create_client(settings: MongoEventStoreSettings, **kwargs: Any) -> AsyncIOMotorClient:
    """Build a motor client; extra *kwargs* go to ``AsyncIOMotorClient``.

    ``tz_aware`` defaults to the settings value so replayed event timestamps
    keep their UTC offset.
    """
    kwargs.setdefault("tz_aware", settings.tz_aware)
    return AsyncIOMotorClient(settings.mongo_uri, **kwargs)


def get_database(client: Any, settings: MongoEventStoreSettings) -> Any:
    return client[settings.database]


__all__ = ["create_client", "get_database"]
