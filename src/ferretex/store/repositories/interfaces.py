"""Key-value storage interface (Dependency Inversion Principle).

The store persists its snapshot through ``IKeyValueStorage`` and never
touches files directly.  Values are opaque strings, mirroring the
browser ``localStorage`` contract the snapshot format was designed for.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class IKeyValueStorage(ABC):
    """Base key-value storage contract."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or ``None`` when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``; missing keys are ignored."""
