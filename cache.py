"""Key-value cache for raw HTML and scrape results.

The backing store refuses values larger than CACHE_MAX_VALUE_BYTES, so result
sets are written as fixed-size chunks plus a metadata record:

  results:{year}:chunk:{i}
  results:{year}:meta = {"totalChunks", "totalItems", "chunkSize"}
"""

import json
import logging
import sqlite3
import time
from dataclasses import dataclass
from typing import Any, Optional

from config import (
    CACHE_DEFAULT_TTL,
    CACHE_MAX_VALUE_BYTES,
    CACHE_NAMESPACE,
    CACHE_PATH,
    CACHE_RESULTS_TTL,
    CACHE_VERSION,
    RESULTS_CHUNK_SIZE,
)
from errors import CacheReadError, ValueTooLargeError
from models import RawCatalogRecord

logger = logging.getLogger(__name__)

KV_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    expires_at REAL
);
"""


class SqliteKVStore:
    """String key-value store with per-key expiry and a value size ceiling."""

    def __init__(self, path: str = CACHE_PATH, max_value_bytes: int = CACHE_MAX_VALUE_BYTES):
        self.max_value_bytes = max_value_bytes
        self.conn = sqlite3.connect(path)
        self.conn.executescript(KV_SCHEMA)

    def get(self, key: str) -> Optional[str]:
        row = self.conn.execute(
            "SELECT value, expires_at FROM kv WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        value, expires_at = row
        if expires_at is not None and expires_at <= time.time():
            self.delete(key)
            return None
        return value

    def put(self, key: str, value: str, ttl: Optional[int] = None):
        size = len(value.encode("utf-8"))
        if size > self.max_value_bytes:
            raise ValueTooLargeError(
                f"Value for {key} is {size} bytes (limit {self.max_value_bytes})"
            )
        expires_at = time.time() + ttl if ttl else None
        self.conn.execute(
            "INSERT INTO kv (key, value, expires_at) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, expires_at = excluded.expires_at",
            (key, value, expires_at),
        )
        self.conn.commit()

    def delete(self, key: str):
        self.conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self.conn.commit()

    def list_keys(self, prefix: str) -> list[str]:
        rows = self.conn.execute(
            "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        ).fetchall()
        return [r[0] for r in rows]

    def close(self):
        self.conn.close()


class CacheService:
    """JSON cache over a key-value store. Failures are logged, never raised."""

    def __init__(
        self,
        store: SqliteKVStore,
        version: str = CACHE_VERSION,
        namespace: str = CACHE_NAMESPACE,
        default_ttl: int = CACHE_DEFAULT_TTL,
    ):
        self.store = store
        self.version = version
        self.namespace = namespace
        self.default_ttl = default_ttl

    def _key(self, key: str) -> str:
        return f"{self.version}:{self.namespace}:{key}"

    def get(self, key: str) -> Any:
        try:
            raw = self.store.get(self._key(key))
            return json.loads(raw) if raw is not None else None
        except (sqlite3.Error, ValueError) as e:
            logger.error(f"[cache] get {key} failed: {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            self.store.put(self._key(key), json.dumps(value), ttl or self.default_ttl)
            return True
        except (sqlite3.Error, TypeError, ValueTooLargeError) as e:
            logger.error(f"[cache] set {key} failed: {e}")
            return False

    def delete(self, key: str):
        try:
            self.store.delete(self._key(key))
        except sqlite3.Error as e:
            logger.error(f"[cache] delete {key} failed: {e}")

    def close(self):
        self.store.close()

    def delete_by_prefix(self, prefix: str) -> int:
        try:
            keys = self.store.list_keys(self._key(prefix))
            for key in keys:
                self.store.delete(key)
            return len(keys)
        except sqlite3.Error as e:
            logger.error(f"[cache] delete prefix {prefix} failed: {e}")
            return 0


@dataclass
class ChunkMeta:
    total_chunks: int
    total_items: int
    chunk_size: int

    def to_dict(self) -> dict:
        return {
            "totalChunks": self.total_chunks,
            "totalItems": self.total_items,
            "chunkSize": self.chunk_size,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChunkMeta":
        return cls(
            total_chunks=int(data["totalChunks"]),
            total_items=int(data["totalItems"]),
            chunk_size=int(data["chunkSize"]),
        )


def results_prefix(year: str) -> str:
    return f"results:{year}:"


def chunk_key(year: str, index: int) -> str:
    return f"results:{year}:chunk:{index}"


def meta_key(year: str) -> str:
    return f"results:{year}:meta"


def html_key(name: str) -> str:
    """Raw HTML key for a year or a page slug."""
    return f"html:{name}"


def write_results(
    cache: CacheService,
    year: str,
    records: list[RawCatalogRecord],
    chunk_size: int = RESULTS_CHUNK_SIZE,
    ttl: int = CACHE_RESULTS_TTL,
) -> ChunkMeta:
    """Split records into chunks and store them with a metadata record."""
    # Drop chunks left over from a larger previous run
    cache.delete_by_prefix(results_prefix(year))

    chunks = [records[i:i + chunk_size] for i in range(0, len(records), chunk_size)]
    for i, chunk in enumerate(chunks):
        cache.set(chunk_key(year, i), [r.to_dict() for r in chunk], ttl)
        logger.info(f"[cache] Results chunk {i + 1}/{len(chunks)} for {year} cached")

    meta = ChunkMeta(total_chunks=len(chunks), total_items=len(records), chunk_size=chunk_size)
    cache.set(meta_key(year), meta.to_dict(), ttl)
    logger.info(f"[cache] {len(chunks)} chunks ({len(records)} items) for {year} cached")
    return meta


def _read_chunk(cache: CacheService, year: str, index: int) -> list[RawCatalogRecord]:
    data = cache.get(chunk_key(year, index))
    if not data:
        raise CacheReadError(f"Chunk {index} missing", year=year)
    try:
        return [RawCatalogRecord.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        raise CacheReadError(f"Chunk {index} corrupt: {e}", year=year) from e


def read_results(cache: CacheService, year: str) -> Optional[list[RawCatalogRecord]]:
    """Reassemble cached results for a year. None when no metadata exists.

    Missing or corrupt chunks are skipped, so the result may be partial.
    """
    raw_meta = cache.get(meta_key(year))
    if not raw_meta:
        logger.info(f"[cache] No results metadata for {year}")
        return None
    try:
        meta = ChunkMeta.from_dict(raw_meta)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"[cache] Bad results metadata for {year}: {e}")
        return None

    records: list[RawCatalogRecord] = []
    for i in range(meta.total_chunks):
        try:
            records.extend(_read_chunk(cache, year, i))
        except CacheReadError as e:
            logger.warning(f"[cache] [{e.context}] {e}, skipping")
    if len(records) != meta.total_items:
        logger.warning(
            f"[cache] Partial results for {year}: {len(records)}/{meta.total_items} items"
        )
    return records
