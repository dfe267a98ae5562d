"""Tests for the read-through cache store."""

import pytest

from geoadmin.cache import USER_KEY, CacheStore, MemoryCacheStore, collection_key


@pytest.fixture(params=["file", "memory"])
def store(request, tmp_path):
    if request.param == "file":
        return CacheStore(tmp_path)
    return MemoryCacheStore()


def test_collection_key():
    assert collection_key("cities") == "cities_cache"
    assert collection_key("seo-custom-fields") == "seo_custom_fields_cache"


def test_missing_key_is_none(store):
    assert store.get("countries_cache") is None


def test_set_then_get(store):
    store.set("countries_cache", [{"_id": "c1", "name": "France"}])

    assert store.get("countries_cache") == [{"_id": "c1", "name": "France"}]


def test_set_replaces_value(store):
    store.set(USER_KEY, {"email": "a@b.c"})
    store.set(USER_KEY, {"email": "x@y.z"})

    assert store.get(USER_KEY) == {"email": "x@y.z"}


def test_delete_and_clear(store):
    store.set("a_cache", [1])
    store.set("b_cache", [2])

    store.delete("a_cache")
    assert store.get("a_cache") is None
    assert store.get("b_cache") == [2]

    store.clear()
    assert store.get("b_cache") is None


def test_delete_missing_key_is_silent(store):
    store.delete("never_set")


class TestCorruption:

    def test_corrupt_memory_entry_returns_none(self):
        store = MemoryCacheStore()
        store.put_raw("cities_cache", "{not json")

        assert store.get("cities_cache") is None

    def test_corrupt_file_entry_returns_none(self, tmp_path):
        store = CacheStore(tmp_path)
        store.cache_dir.mkdir(parents=True)
        (store.cache_dir / "cities_cache.json").write_text("[{broken", encoding="utf-8")

        assert store.get("cities_cache") is None

    def test_undecodable_file_returns_none(self, tmp_path):
        store = CacheStore(tmp_path)
        store.cache_dir.mkdir(parents=True)
        (store.cache_dir / "cities_cache.json").write_bytes(b"\xff\xfe\x00garbage")

        assert store.get("cities_cache") is None

    def test_unserializable_value_is_ignored(self, store):
        store.set("bad_cache", {"value": object()})

        assert store.get("bad_cache") is None

    def test_write_failure_is_ignored(self, tmp_path):
        blocker = tmp_path / "blocked"
        blocker.write_text("not a directory")
        store = CacheStore(blocker)

        store.set("cities_cache", [{"_id": "1"}])

        assert store.get("cities_cache") is None


def test_file_store_layout(tmp_path):
    store = CacheStore(tmp_path)
    store.set("cities_cache", [])

    assert (tmp_path / "cache" / "cities_cache.json").exists()
