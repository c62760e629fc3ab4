"""Tests for the key-value stores."""

import pytest

from order_extractor.services.kv_store import InMemoryKeyValueStore, SQLiteKeyValueStore


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryKeyValueStore()
    return SQLiteKeyValueStore(tmp_path / "nested" / "store.db")


class TestKeyValueStore:
    """Test suite shared by both store implementations."""

    def test_missing_key(self, store):
        assert store.get("absent") is None

    def test_set_get_replace(self, store):
        store.set("key", "one")
        store.set("key", "二")

        assert store.get("key") == "二"

    def test_delete(self, store):
        store.set("key", "value")

        store.delete("key")
        store.delete("never-set")

        assert store.get("key") is None


def test_sqlite_survives_reopen(tmp_path):
    path = tmp_path / "store.db"
    SQLiteKeyValueStore(path).set("ai_learning_history", "[]")

    assert SQLiteKeyValueStore(path).get("ai_learning_history") == "[]"
