import json

import pytest

from marketrank.config import HISTORY_KEY
from marketrank.history import (
    HistoryReadError,
    InMemoryStore,
    JsonFileStore,
    ViewHistory,
)


class BrokenStore:
    """Store whose reads always fail, like a blocked browser storage."""

    def get(self, key):
        raise OSError("storage disabled")

    def set(self, key, value):
        raise OSError("storage disabled")


def test_missing_key_is_empty_history():
    assert ViewHistory(InMemoryStore()).read() == []


def test_write_then_read_trims_to_limit():
    history = ViewHistory(InMemoryStore(), limit=3)
    written = history.write(["a", "b", "c", "d"])
    assert written == ["a", "b", "c"]
    assert history.read() == ["a", "b", "c"]


def test_history_is_stored_as_json_array_under_fixed_key():
    store = InMemoryStore()
    ViewHistory(store).write(["p1", "p2"])
    assert json.loads(store.get(HISTORY_KEY)) == ["p1", "p2"]


def test_corrupt_json_raises_history_read_error():
    store = InMemoryStore({HISTORY_KEY: "{not json"})
    with pytest.raises(HistoryReadError):
        ViewHistory(store).read()


def test_non_list_value_raises_history_read_error():
    store = InMemoryStore({HISTORY_KEY: json.dumps({"id": "p1"})})
    with pytest.raises(HistoryReadError):
        ViewHistory(store).read()


def test_store_failure_raises_history_read_error():
    with pytest.raises(HistoryReadError):
        ViewHistory(BrokenStore()).read()


def test_json_file_store_persists_between_instances(tmp_path):
    path = tmp_path / "nested" / "store.json"
    ViewHistory(JsonFileStore(path)).write(["p9", "p3"])

    assert path.exists()
    assert ViewHistory(JsonFileStore(path)).read() == ["p9", "p3"]


def test_json_file_store_keeps_other_keys(tmp_path):
    path = tmp_path / "store.json"
    store = JsonFileStore(path)
    store.set("a", "1")
    store.set("b", "2")
    assert store.get("a") == "1"
    assert store.get("b") == "2"
    assert store.get("missing") is None


def test_json_file_store_recovers_from_garbage_file(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("garbage", encoding="utf-8")
    store = JsonFileStore(path)

    with pytest.raises(HistoryReadError):
        ViewHistory(store).read()

    store.set(HISTORY_KEY, json.dumps(["p1"]))
    assert ViewHistory(store).read() == ["p1"]
