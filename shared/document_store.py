# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""Document store clients used by the admin tooling.

``HttpDocumentStore`` talks to the backend's ``/api/data`` routes. The backend
has no change feed, so ``watch`` polls every two seconds and only reports a
document when its serialized value changed. ``LocalDocumentStore`` wraps a
key/value store in-process and pushes changes to subscribers on write.
"""

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

import requests

from backend.kv_store import KeyValueStore
from shared.errors import TransportError

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 2.0
REQUEST_TIMEOUT = 30  # seconds


def doc_path(*segments: str) -> str:
    return "/".join(segments)


@dataclass(frozen=True)
class DocumentSnapshot:
    path: str
    data: Optional[Any] = None

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def exists(self) -> bool:
        return self.data is not None


SnapshotCallback = Callable[[DocumentSnapshot], None]


def serialize(data: Any) -> str:
    return json.dumps(data, sort_keys=True)


class Subscription(Protocol):
    def cancel(self) -> None:
        ...


class DocumentStore(Protocol):
    """Operations the admin tooling needs from a document store."""

    def get(self, path: str) -> DocumentSnapshot:
        ...

    def set(self, path: str, value: dict, merge: bool = False) -> Any:
        ...

    def watch(self, path: str, callback: SnapshotCallback) -> Subscription:
        ...

    def subscribe(self, path: str, callback: SnapshotCallback) -> Subscription:
        ...


def merge_values(existing: DocumentSnapshot, value: dict) -> dict:
    """Shallow merge of ``value`` onto an existing document."""
    if existing.exists and isinstance(existing.data, dict):
        return {**existing.data, **value}
    return value


class PollingWatcher:
    """
    Polls ``fetch`` on a fixed interval and reports changed snapshots.

    ``callback`` runs once on start whatever the content is, and afterwards
    only when the serialized value differs from the last one delivered.
    """

    def __init__(
        self,
        fetch: Callable[[], DocumentSnapshot],
        callback: SnapshotCallback,
        interval: float = POLL_INTERVAL_SECONDS,
    ):
        self._fetch = fetch
        self._callback = callback
        self._interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_serialized: Optional[str] = None
        self._delivered = False

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def poll(self) -> bool:
        """Runs one poll. Returns True if the callback was invoked."""
        if self.cancelled:
            return False
        try:
            snapshot = self._fetch()
            serialized = serialize(snapshot.data)
            if self._delivered and serialized == self._last_serialized:
                return False
            self._last_serialized = serialized
            self._delivered = True
            self._callback(snapshot)
            return True
        except Exception:
            # A failed poll never ends the watch.
            logger.exception("Polling for document changes failed")
            return False

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self.poll()

    def start(self) -> "PollingWatcher":
        self.poll()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._stop.set()


class HttpDocumentStore:
    """Client for the backend's flat key/value API."""

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.poll_interval = poll_interval

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    def _fetch(self, path: str) -> DocumentSnapshot:
        """
        Like ``get`` but only a 404 reads as not found.

        Raises:
            TransportError: On network, server or parse errors.
        """
        try:
            response = self.session.get(self._url(path), timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            raise TransportError(f"Failed to fetch {path}: {exc}") from exc
        if response.status_code == 404:
            return DocumentSnapshot(path)
        if not response.ok:
            raise TransportError(f"Failed to fetch {path}", status_code=response.status_code)
        try:
            return DocumentSnapshot(path, response.json())
        except ValueError as exc:
            raise TransportError(f"Invalid JSON for {path}: {exc}") from exc

    def get(self, path: str) -> DocumentSnapshot:
        try:
            return self._fetch(path)
        except TransportError as exc:
            logger.error("Error fetching %s from backend: %s", path, exc)
            return DocumentSnapshot(path)

    def set(self, path: str, value: dict, merge: bool = False) -> Any:
        # Merge is read-then-write with no version check; last write wins.
        final_value = merge_values(self.get(path), value) if merge else value
        try:
            response = self.session.post(
                self._url(path), json=final_value, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as exc:
            logger.error("Error saving %s to backend: %s", path, exc)
            raise TransportError(f"Failed to save {path} to backend: {exc}") from exc
        if not response.ok:
            raise TransportError(
                f"Failed to save {path} to backend", status_code=response.status_code
            )
        return response.json()

    def dump(self) -> dict:
        try:
            response = self.session.get(self.base_url, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            raise TransportError(f"Failed to fetch site data: {exc}") from exc
        if not response.ok:
            raise TransportError("Failed to fetch site data", status_code=response.status_code)
        return response.json()

    def replace_all(self, data: dict) -> None:
        try:
            response = self.session.post(self.base_url, json=data, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            raise TransportError(f"Failed to restore backend data: {exc}") from exc
        if not response.ok:
            raise TransportError(
                "Failed to restore backend data", status_code=response.status_code
            )

    def watch(self, path: str, callback: SnapshotCallback) -> PollingWatcher:
        # Failed polls are skipped, not reported as a deleted document.
        watcher = PollingWatcher(lambda: self._fetch(path), callback, self.poll_interval)
        return watcher.start()

    subscribe = watch


class _LocalSubscription:
    def __init__(self, store: "LocalDocumentStore", path: str, callback: SnapshotCallback):
        self._store = store
        self.path = path
        self._callback = callback
        self._last_serialized: Optional[str] = None
        self.cancelled = False

    def deliver(self, snapshot: DocumentSnapshot, force: bool = False) -> None:
        if self.cancelled:
            return
        serialized = serialize(snapshot.data)
        if not force and serialized == self._last_serialized:
            return
        self._last_serialized = serialized
        try:
            self._callback(snapshot)
        except Exception:
            logger.exception("Subscriber for %s failed", self.path)

    def cancel(self) -> None:
        self.cancelled = True
        self._store._unsubscribe(self)


class LocalDocumentStore:
    """
    In-process store with push notifications.

    Subscribers are notified synchronously after each write to their path.
    """

    def __init__(self, kv_store: KeyValueStore):
        self._kv = kv_store
        self._subscribers: Dict[str, List[_LocalSubscription]] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> DocumentSnapshot:
        return DocumentSnapshot(path, self._kv.get(path))

    def set(self, path: str, value: dict, merge: bool = False) -> Any:
        final_value = merge_values(self.get(path), value) if merge else value
        self._kv.set(path, final_value)
        self._notify(path)
        return {"success": True, "path": path}

    def dump(self) -> dict:
        return self._kv.dump()

    def replace_all(self, data: dict) -> None:
        self._kv.replace_all(data)
        with self._lock:
            paths = list(self._subscribers)
        for path in paths:
            self._notify(path)

    def subscribe(self, path: str, callback: SnapshotCallback) -> _LocalSubscription:
        subscription = _LocalSubscription(self, path, callback)
        with self._lock:
            self._subscribers.setdefault(path, []).append(subscription)
        subscription.deliver(self.get(path), force=True)
        return subscription

    watch = subscribe

    def _notify(self, path: str) -> None:
        with self._lock:
            subscribers = list(self._subscribers.get(path, []))
        if not subscribers:
            return
        snapshot = self.get(path)
        for subscription in subscribers:
            subscription.deliver(snapshot)

    def _unsubscribe(self, subscription: _LocalSubscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.path, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscribers.pop(subscription.path, None)
