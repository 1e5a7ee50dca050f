"""Tests for the key-value store, cache service and chunked results."""

import json

import pytest

from cache import (
    CacheService,
    SqliteKVStore,
    chunk_key,
    meta_key,
    read_results,
    write_results,
)
from errors import ValueTooLargeError
from models import ModelRef, RawCatalogRecord, SeriesRef

CHUNK = 20


def _records(n):
    return [
        RawCatalogRecord(
            release_code=f"T{i:03d}",
            mainline_index=str(i),
            model=ModelRef(name=f"Car {i}", slug=f"Car_{i}" if i % 3 else None),
            series=[SeriesRef(name="HW Wagons", slug="HW_Wagons_(2025)")],
            series_position=f"{i}/10",
            photo_urls=[f"https://img/{i}.jpg"],
            year="2025",
        )
        for i in range(n)
    ]


@pytest.mark.parametrize("n", [0, 1, CHUNK - 1, CHUNK, CHUNK + 1, 5 * CHUNK])
def test_chunked_round_trip(cache, n):
    records = _records(n)
    meta = write_results(cache, "2025", records, chunk_size=CHUNK)
    assert meta.total_items == n
    assert meta.total_chunks == -(-n // CHUNK)

    restored = read_results(cache, "2025")
    assert [r.to_dict() for r in restored] == [r.to_dict() for r in records]


def test_meta_layout(cache):
    write_results(cache, "2025", _records(45), chunk_size=CHUNK)
    assert cache.get(meta_key("2025")) == {"totalChunks": 3, "totalItems": 45, "chunkSize": 20}
    assert len(cache.get(chunk_key("2025", 2))) == 5


def test_missing_chunk_returns_partial_results(cache):
    write_results(cache, "2025", _records(45), chunk_size=CHUNK)
    cache.delete(chunk_key("2025", 1))
    restored = read_results(cache, "2025")
    assert [r.release_code for r in restored] == [f"T{i:03d}" for i in list(range(20)) + list(range(40, 45))]


def test_corrupt_chunk_is_skipped(cache):
    write_results(cache, "2025", _records(25), chunk_size=CHUNK)
    cache.set(chunk_key("2025", 0), [{"unexpected": True}])
    restored = read_results(cache, "2025")
    assert len(restored) == 5


def test_no_metadata_means_miss(cache):
    assert read_results(cache, "1999") is None


def test_rewrite_drops_stale_chunks(cache):
    write_results(cache, "2025", _records(60), chunk_size=CHUNK)
    write_results(cache, "2025", _records(10), chunk_size=CHUNK)
    assert cache.get(chunk_key("2025", 2)) is None
    assert len(read_results(cache, "2025")) == 10


def test_keys_are_versioned(cache, store):
    cache.set("html:2025", "<html></html>")
    assert store.list_keys("v1:scrape:html:") == ["v1:scrape:html:2025"]


def test_store_rejects_oversized_values():
    store = SqliteKVStore(":memory:", max_value_bytes=10)
    with pytest.raises(ValueTooLargeError):
        store.put("k", "x" * 11)
    store.put("k", "x" * 10)
    assert store.get("k") == "x" * 10


def test_cache_set_failure_is_not_fatal():
    cache = CacheService(SqliteKVStore(":memory:", max_value_bytes=10))
    assert cache.set("big", "x" * 100) is False
    assert cache.get("big") is None


def test_entries_expire(store, monkeypatch):
    now = [1000.0]
    monkeypatch.setattr("cache.time.time", lambda: now[0])
    store.put("k", json.dumps("v"), ttl=60)
    assert store.get("k") == '"v"'
    now[0] += 61
    assert store.get("k") is None
    assert store.list_keys("k") == []


def test_delete_by_prefix(cache):
    cache.set("html:2024", "a")
    cache.set("html:2025", "b")
    cache.set("results:2025:meta", {})
    assert cache.delete_by_prefix("html:") == 2
    assert cache.get("html:2024") is None
    assert cache.get("results:2025:meta") == {}
