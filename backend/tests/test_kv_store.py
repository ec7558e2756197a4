import json
import os
import shutil
import tempfile
import unittest

from backend.kv_store import InMemoryKeyValueStore, JsonFileKeyValueStore


class JsonFileKeyValueStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.data_file = os.path.join(self.tmp_dir, "data", "data.json")

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def test_creates_empty_data_file(self):
        JsonFileKeyValueStore(self.data_file)
        with open(self.data_file, encoding="utf-8") as f:
            self.assertEqual(json.load(f), {})

    def test_write_then_read_returns_equal_value(self):
        store = JsonFileKeyValueStore(self.data_file)
        value = {"title": "QuickStor", "nested": {"list": [1, 2.5, None, "x"]}}
        store.set("sites/quickstor-staging", value)
        self.assertEqual(store.get("sites/quickstor-staging"), value)

        # A fresh instance sees the same file contents.
        reopened = JsonFileKeyValueStore(self.data_file)
        self.assertEqual(reopened.get("sites/quickstor-staging"), value)

    def test_missing_key_returns_none(self):
        store = JsonFileKeyValueStore(self.data_file)
        self.assertIsNone(store.get("sites/never-written"))

    def test_writes_to_distinct_keys_do_not_clobber(self):
        store = JsonFileKeyValueStore(self.data_file)
        store.set("sites/a", {"n": 1})
        store.set("sites/b", {"n": 2})
        self.assertEqual(store.dump(), {"sites/a": {"n": 1}, "sites/b": {"n": 2}})

    def test_replace_all_overwrites_mapping(self):
        store = JsonFileKeyValueStore(self.data_file)
        store.set("sites/a", {"n": 1})
        store.replace_all({"sites/c": {"n": 3}})
        self.assertEqual(store.dump(), {"sites/c": {"n": 3}})
        self.assertIsNone(store.get("sites/a"))

    def test_corrupt_file_reads_as_empty(self):
        store = JsonFileKeyValueStore(self.data_file)
        with open(self.data_file, "w", encoding="utf-8") as f:
            f.write("{not json")
        self.assertEqual(store.dump(), {})
        self.assertIsNone(store.get("sites/a"))


class InMemoryKeyValueStoreTests(unittest.TestCase):
    def test_values_are_copied(self):
        store = InMemoryKeyValueStore()
        value = {"items": [1]}
        store.set("doc", value)
        value["items"].append(2)
        self.assertEqual(store.get("doc"), {"items": [1]})

        fetched = store.get("doc")
        fetched["items"].append(3)
        self.assertEqual(store.get("doc"), {"items": [1]})


if __name__ == "__main__":
    unittest.main()
