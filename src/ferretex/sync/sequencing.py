"""Per-resource request sequencing.

A late response from a superseded request must not overwrite newer
state: callers ``issue`` a number before the request and apply the
result only if ``is_current`` still holds when it arrives.
"""

from __future__ import annotations

import threading
from typing import Dict


class RequestSequencer:
    def __init__(self) -> None:
        self._latest: Dict[str, int] = {}
        self._lock = threading.Lock()

    def issue(self, resource: str) -> int:
        with self._lock:
            seq = self._latest.get(resource, 0) + 1
            self._latest[resource] = seq
            return seq

    def is_current(self, resource: str, seq: int) -> bool:
        with self._lock:
            return self._latest.get(resource) == seq
