"""Config settings – Settings base class."""
from __future__ import annotations

import dataclasses
from typing import ClassVar


@dataclasses.dataclass
class Settings:
    """Base class for environment-driven settings.

    ``_prefix`` namespaces the environment variables: field ``database`` of a
    class with prefix ``EVENTSTORE`` is read from ``EVENTSTORE_DATABASE``.
    """

    _prefix: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Override to add cross-field validation (raise ``InvalidSettingValueError``)."""


__all__ = ["Settings"]
