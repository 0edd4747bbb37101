"""JSON-file implementation of ``IKeyValueStorage``.

All keys live in one JSON object file.  Writes go to a temporary file
first and are moved into place with ``os.replace``; a missing or
corrupt file reads as empty.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Dict, Optional

import structlog

from ferretex.store.repositories.interfaces import IKeyValueStorage

logger = structlog.get_logger(__name__)


class JsonFileStorage(IKeyValueStorage):
    def __init__(self, path: os.PathLike | str) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()

    def _read(self) -> Dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError):
            logger.warning("storage.unreadable", path=str(self.path))
            return {}
        if not isinstance(data, dict):
            logger.warning("storage.unexpected_shape", path=str(self.path))
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, ensure_ascii=False)
            os.replace(temp_path, self.path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if data.pop(key, None) is not None:
                self._write(data)
