"""Observability – structured logging helpers."""
from mp_eventsource.observability.logging.factory import JsonLoggerFactory
from mp_eventsource.observability.logging.filters import DEFAULT_SENSITIVE_FIELDS, SensitiveFieldsFilter
from mp_eventsource.observability.logging.processors import get_logger

__all__ = [
    "DEFAULT_SENSITIVE_FIELDS",
    "JsonLoggerFactory",
    "SensitiveFieldsFilter",
    "get_logger",
]
