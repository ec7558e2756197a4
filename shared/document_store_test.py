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

import unittest
from unittest.mock import MagicMock

import requests

from backend.kv_store import InMemoryKeyValueStore
from shared.document_store import (
    DocumentSnapshot,
    HttpDocumentStore,
    LocalDocumentStore,
    PollingWatcher,
    doc_path,
)
from shared.errors import TransportError


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload
    if response.ok:
        response.raise_for_status.return_value = None
    else:
        response.raise_for_status.side_effect = requests.HTTPError(str(status_code))
    return response


class HttpDocumentStoreTest(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.store = HttpDocumentStore("http://backend.test/api/data/", session=self.session)

    def test_get_existing_document(self):
        self.session.get.return_value = _response(200, {"title": "Hello"})
        snapshot = self.store.get("sites/quickstor-staging")
        self.session.get.assert_called_once_with(
            "http://backend.test/api/data/sites/quickstor-staging", timeout=30
        )
        self.assertTrue(snapshot.exists)
        self.assertEqual(snapshot.id, "quickstor-staging")
        self.assertEqual(snapshot.data, {"title": "Hello"})

    def test_get_missing_document_is_not_found(self):
        self.session.get.return_value = _response(404, {"error": "Document not found"})
        snapshot = self.store.get("sites/never-written")
        self.assertFalse(snapshot.exists)
        self.assertIsNone(snapshot.data)

    def test_get_network_error_is_not_found(self):
        self.session.get.side_effect = requests.ConnectionError("refused")
        snapshot = self.store.get("sites/a")
        self.assertFalse(snapshot.exists)

    def test_get_server_error_is_not_found(self):
        self.session.get.return_value = _response(500, {"error": "Internal Server Error"})
        self.assertFalse(self.store.get("sites/a").exists)

    def test_set_overwrites_without_reading(self):
        self.session.post.return_value = _response(200, {"success": True, "path": "sites/a"})
        result = self.store.set("sites/a", {"title": "New"})
        self.assertEqual(result, {"success": True, "path": "sites/a"})
        self.session.get.assert_not_called()
        _, kwargs = self.session.post.call_args
        self.assertEqual(kwargs["json"], {"title": "New"})

    def test_set_with_merge_reads_then_merges(self):
        self.session.get.return_value = _response(200, {"title": "Old", "theme": "dark"})
        self.session.post.return_value = _response(200, {"success": True, "path": "sites/a"})
        self.store.set("sites/a", {"title": "New"}, merge=True)
        _, kwargs = self.session.post.call_args
        self.assertEqual(kwargs["json"], {"title": "New", "theme": "dark"})

    def test_set_with_merge_on_missing_document(self):
        self.session.get.return_value = _response(404)
        self.session.post.return_value = _response(200, {"success": True, "path": "sites/a"})
        self.store.set("sites/a", {"title": "New"}, merge=True)
        _, kwargs = self.session.post.call_args
        self.assertEqual(kwargs["json"], {"title": "New"})

    def test_set_failure_raises(self):
        self.session.post.return_value = _response(500)
        with self.assertRaises(TransportError) as ctx:
            self.store.set("sites/a", {"title": "New"})
        self.assertEqual(ctx.exception.status_code, 500)

    def test_doc_path_joins_segments(self):
        self.assertEqual(doc_path("sites", "quickstor-staging"), "sites/quickstor-staging")


class PollingWatcherTest(unittest.TestCase):
    def _watcher(self, values):
        snapshots = iter(DocumentSnapshot("sites/a", v) for v in values)
        callback = MagicMock()
        watcher = PollingWatcher(lambda: next(snapshots), callback, interval=60)
        return watcher, callback

    def test_first_poll_always_delivers(self):
        watcher, callback = self._watcher([None])
        self.assertTrue(watcher.poll())
        callback.assert_called_once()
        self.assertFalse(callback.call_args[0][0].exists)

    def test_only_changed_content_is_delivered(self):
        watcher, callback = self._watcher(
            [{"v": 1}, {"v": 1}, {"v": 2}, {"v": 2}, {"v": 1}]
        )
        results = [watcher.poll() for _ in range(5)]
        self.assertEqual(results, [True, False, True, False, True])
        delivered = [c[0][0].data for c in callback.call_args_list]
        self.assertEqual(delivered, [{"v": 1}, {"v": 2}, {"v": 1}])

    def test_key_order_does_not_count_as_change(self):
        watcher, callback = self._watcher([{"a": 1, "b": 2}, {"b": 2, "a": 1}])
        watcher.poll()
        watcher.poll()
        callback.assert_called_once()

    def test_errors_do_not_stop_polling(self):
        fetch = MagicMock(
            side_effect=[
                DocumentSnapshot("sites/a", {"v": 1}),
                ValueError("bad json"),
                DocumentSnapshot("sites/a", {"v": 2}),
            ]
        )
        callback = MagicMock()
        watcher = PollingWatcher(fetch, callback, interval=60)
        self.assertTrue(watcher.poll())
        self.assertFalse(watcher.poll())
        self.assertTrue(watcher.poll())
        self.assertEqual(callback.call_count, 2)

    def test_cancel_stops_delivery(self):
        watcher, callback = self._watcher([{"v": 1}, {"v": 2}])
        watcher.start()
        callback.assert_called_once()
        watcher.cancel()
        self.assertTrue(watcher.cancelled)
        self.assertFalse(watcher.poll())
        callback.assert_called_once()

    def test_http_watch_invokes_callback_immediately(self):
        session = MagicMock()
        session.get.return_value = _response(200, {"title": "Hi"})
        store = HttpDocumentStore("http://backend.test/api/data", session=session, poll_interval=60)
        callback = MagicMock()
        subscription = store.watch("sites/a", callback)
        try:
            callback.assert_called_once_with(DocumentSnapshot("sites/a", {"title": "Hi"}))
        finally:
            subscription.cancel()

    def test_http_watch_skips_failed_polls(self):
        session = MagicMock()
        session.get.side_effect = [
            _response(200, {"v": 1}),
            requests.ConnectionError("reset"),
            _response(503),
            _response(200, {"v": 1}),
            _response(404),
        ]
        store = HttpDocumentStore("http://backend.test/api/data", session=session, poll_interval=60)
        callback = MagicMock()
        watcher = store.watch("sites/a", callback)
        try:
            results = [watcher.poll() for _ in range(4)]
        finally:
            watcher.cancel()
        self.assertEqual(results, [False, False, False, True])
        delivered = [c[0][0] for c in callback.call_args_list]
        self.assertEqual(
            delivered, [DocumentSnapshot("sites/a", {"v": 1}), DocumentSnapshot("sites/a")]
        )

    def test_http_subscribe_is_polling_watch(self):
        session = MagicMock()
        session.get.return_value = _response(404)
        store = HttpDocumentStore("http://backend.test/api/data", session=session, poll_interval=60)
        callback = MagicMock()
        subscription = store.subscribe("sites/a", callback)
        try:
            self.assertIsInstance(subscription, PollingWatcher)
            callback.assert_called_once_with(DocumentSnapshot("sites/a"))
        finally:
            subscription.cancel()


class LocalDocumentStoreTest(unittest.TestCase):
    def setUp(self):
        self.store = LocalDocumentStore(InMemoryKeyValueStore())

    def test_write_then_read(self):
        value = {"pages": [{"id": "home"}], "count": 3}
        self.store.set("sites/a", value)
        self.assertEqual(self.store.get("sites/a").data, value)

    def test_read_never_written_path(self):
        snapshot = self.store.get("sites/missing")
        self.assertFalse(snapshot.exists)

    def test_merge_write(self):
        self.store.set("sites/a", {"title": "Old", "theme": "dark"})
        self.store.set("sites/a", {"title": "New"}, merge=True)
        self.assertEqual(self.store.get("sites/a").data, {"title": "New", "theme": "dark"})

    def test_subscribe_pushes_changes(self):
        callback = MagicMock()
        subscription = self.store.subscribe("sites/a", callback)
        callback.assert_called_once()
        self.assertFalse(callback.call_args[0][0].exists)

        self.store.set("sites/a", {"v": 1})
        self.store.set("sites/a", {"v": 1})
        self.store.set("sites/b", {"v": 9})
        self.store.set("sites/a", {"v": 2})
        delivered = [c[0][0].data for c in callback.call_args_list]
        self.assertEqual(delivered, [None, {"v": 1}, {"v": 2}])

        subscription.cancel()
        self.store.set("sites/a", {"v": 3})
        self.assertEqual(callback.call_count, 3)

    def test_replace_all_notifies_subscribers(self):
        callback = MagicMock()
        self.store.subscribe("sites/a", callback)
        self.store.replace_all({"sites/a": {"restored": True}})
        self.assertEqual(callback.call_args[0][0].data, {"restored": True})


if __name__ == "__main__":
    unittest.main()
