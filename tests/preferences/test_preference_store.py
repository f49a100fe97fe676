"""Tests for the key/value stores: in-memory and SQLite."""

import pytest

from preferences.store import InMemoryPreferenceStore, SqlitePreferenceStore, StoreKey


@pytest.fixture(params=["memory", "sqlite"])
def kv(request, tmp_path):
    if request.param == "memory":
        return InMemoryPreferenceStore()
    return SqlitePreferenceStore(tmp_path / "prefs.db")


class TestBasicOps:
    def test_get_missing(self, kv):
        assert kv.get(StoreKey.COMPANIONS) is None

    def test_set_and_get(self, kv):
        kv.set(StoreKey.COMPANIONS, "[]")
        assert kv.get(StoreKey.COMPANIONS) == "[]"

    def test_overwrite(self, kv):
        kv.set("k", "1")
        kv.set("k", "2")
        assert kv.get("k") == "2"

    def test_delete(self, kv):
        kv.set("k", "1")
        kv.delete("k")
        assert kv.get("k") is None

    def test_delete_missing_is_noop(self, kv):
        kv.delete("never-set")

    def test_keys(self, kv):
        kv.set("b", "1")
        kv.set("a", "2")
        assert kv.keys() == ["a", "b"]


class TestCompareAndSet:
    def test_create_when_absent(self, kv):
        assert kv.compare_and_set("k", None, "v1")
        assert kv.get("k") == "v1"

    def test_create_fails_when_present(self, kv):
        kv.set("k", "v1")
        assert not kv.compare_and_set("k", None, "v2")
        assert kv.get("k") == "v1"

    def test_swap_on_match(self, kv):
        kv.set("k", "v1")
        assert kv.compare_and_set("k", "v1", "v2")
        assert kv.get("k") == "v2"

    def test_no_swap_on_mismatch(self, kv):
        kv.set("k", "v1")
        assert not kv.compare_and_set("k", "stale", "v2")
        assert kv.get("k") == "v1"


class TestSqlitePersistence:
    def test_survives_reopen(self, tmp_path):
        db = tmp_path / "prefs.db"
        SqlitePreferenceStore(db).set(StoreKey.USER_PREFERENCES, '{"x": 1}')
        assert SqlitePreferenceStore(db).get(StoreKey.USER_PREFERENCES) == '{"x": 1}'

    def test_creates_parent_dir(self, tmp_path):
        db = tmp_path / "nested" / "dir" / "prefs.db"
        SqlitePreferenceStore(db)
        assert db.exists()

    def test_initial_data_for_memory_store(self):
        store = InMemoryPreferenceStore({"k": "v"})
        assert store.get("k") == "v"
