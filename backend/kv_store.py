"""
Flat key/value document store backed by a single JSON file.

Keys are slash-joined document paths (``sites/quickstor-staging``) and values
are arbitrary JSON objects. Every write rewrites the whole file; there is no
locking, so two writers racing on the same key resolve as last-write-wins.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Defines the operations the API needs from the document store."""

    def get(self, path: str) -> Optional[Any]:
        ...

    def set(self, path: str, value: Any) -> None:
        ...

    def dump(self) -> dict:
        ...

    def replace_all(self, data: dict) -> None:
        ...


@dataclass
class InMemoryKeyValueStore:
    """Test double for the JSON file store."""

    data: dict = field(default_factory=dict)

    def get(self, path: str) -> Optional[Any]:
        stored = self.data.get(path)
        if stored is None:
            return None
        # Round-trip through JSON so callers never share references.
        return json.loads(json.dumps(stored))

    def set(self, path: str, value: Any) -> None:
        self.data[path] = json.loads(json.dumps(value))

    def dump(self) -> dict:
        return json.loads(json.dumps(self.data))

    def replace_all(self, data: dict) -> None:
        self.data = json.loads(json.dumps(data))

    def reset(self) -> None:
        self.data = {}


@dataclass
class JsonFileKeyValueStore:
    """
    Whole-file JSON store. Each operation reads or writes the full mapping.
    """

    path: str

    def __post_init__(self):
        self.ensure_file()

    def ensure_file(self) -> None:
        if os.path.exists(self.path):
            return
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("{}")
        logger.info("Created new data file at %s", self.path)

    def _read(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            # A missing or unreadable file behaves like an empty store.
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def get(self, path: str) -> Optional[Any]:
        return self._read().get(path)

    def set(self, path: str, value: Any) -> None:
        data = self._read()
        data[path] = value
        self._write(data)

    def dump(self) -> dict:
        return self._read()

    def replace_all(self, data: dict) -> None:
        self._write(data)
