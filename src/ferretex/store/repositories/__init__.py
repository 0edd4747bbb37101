"""Store persistence repositories package."""

from ferretex.store.repositories.interfaces import IKeyValueStorage
from ferretex.store.repositories.json_repository import JsonFileStorage
from ferretex.store.repositories.memory_repository import InMemoryStorage

__all__ = ["IKeyValueStorage", "InMemoryStorage", "JsonFileStorage"]
