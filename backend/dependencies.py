"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from backend.config import get_settings
from backend.kv_store import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore

_kv_store: KeyValueStore | None = None


def get_kv_store() -> KeyValueStore:
    """
    Return a singleton store so every request sees the same data file.
    """
    global _kv_store
    if _kv_store is not None:
        return _kv_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _kv_store = InMemoryKeyValueStore()
    else:
        _kv_store = JsonFileKeyValueStore(settings.data_file)
    return _kv_store


def reset_kv_store() -> None:
    global _kv_store
    _kv_store = None
