"""Kernel types – identifier value objects and codecs."""
from mp_eventsource.kernel.types.ids import EntityId, IdentifierCodec, StringIdCodec

__all__ = ["EntityId", "IdentifierCodec", "StringIdCodec"]
