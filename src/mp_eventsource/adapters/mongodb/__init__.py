"""MongoDB adapter — unified and segregated event repositories, transactions.

Requires ``motor`` (and ``pymongo``, which it pulls in).
"""

from mp_eventsource.adapters.mongodb.client import create_client, get_database
from mp_eventsource.adapters.mongodb.ids import ObjectIdCodec
from mp_eventsource.adapters.mongodb.repository import MongoEventRepository, MongoSessionRepository
from mp_eventsource.adapters.mongodb.segregated import (
    SegregatedMongoEventRepository,
    SegregatedSessionRepository,
)
from mp_eventsource.adapters.mongodb.settings import MongoEventStoreSettings
from mp_eventsource.adapters.mongodb.uow import MongoUnitOfWork, run_in_transaction

__all__ = [
    "MongoEventRepository",
    "MongoEventStoreSettings",
    "MongoSessionRepository",
    "MongoUnitOfWork",
    "ObjectIdCodec",
    "SegregatedMongoEventRepository",
    "SegregatedSessionRepository",
    "create_client",
    "get_database",
    "run_in_transaction",
]
