"""
mp_eventsource – event-sourced entity persistence.

Import path convention::

    from mp_eventsource.application.event_sourcing import Event, EventEntity, Reducer
    from mp_eventsource.adapters.mongodb import MongoEventRepository
    from mp_eventsource.kernel.errors import UnknownEventTypeError
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
