"""MongoDB adapter — MongoEventStoreSettings."""

from __future__ import annotations

import dataclasses
from typing import ClassVar

from mp_eventsource.config.settings import Settings
from mp_eventsource.config.validation import InvalidSettingValueError


@dataclasses.dataclass
class MongoEventStoreSettings(Settings):
    """Connection and collection names, read from ``EVENTSTORE_*`` variables.

    ``EVENTSTORE_MONGO_URI`` is required; everything else has a default.
    """

    _prefix: ClassVar[str] = "EVENTSTORE"

    mongo_uri: str
    database: str = "events"
    state_collection: str = "entity_states"
    event_collection: str = "entity_events"
    tz_aware: bool = True

    def _validate(self) -> None:
        if not self.mongo_uri.startswith(("mongodb://", "mongodb+srv://")):
            raise InvalidSettingValueError(
                "mongo_uri", "[REDACTED]", "must start with mongodb:// or mongodb+srv://"
            )
        if self.state_collection == self.event_collection:
            raise InvalidSettingValueError(
                "event_collection", self.event_collection, "must differ from state_collection"
            )


__all__ = ["MongoEventStoreSettings"]
