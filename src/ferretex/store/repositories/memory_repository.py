"""Dict-backed storage for tests and throwaway sessions."""

from __future__ import annotations

import threading
from typing import Dict, Optional

from ferretex.store.repositories.interfaces import IKeyValueStorage


class InMemoryStorage(IKeyValueStorage):
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
