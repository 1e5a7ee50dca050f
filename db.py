"""SQLite database operations for the catalogue."""

import logging
import sqlite3
from dataclasses import astuple, fields
from typing import Iterable, Iterator, Sequence, TypeVar

from config import DB_PATH, SQL_VARIABLE_LIMIT
from errors import PersistenceError
from extraction.rules import COLLECTION_CATEGORIES
from models import CastingRow, CollectionRow, ReleaseRow

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA = """
CREATE TABLE IF NOT EXISTS collection_categories (
    code TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT
);

CREATE TABLE IF NOT EXISTS collections (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    wiki_slug TEXT,
    category_code TEXT REFERENCES collection_categories(code),
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS castings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    wiki_slug TEXT,
    avatar_url TEXT,
    designer_name TEXT,
    designer_slug TEXT,
    description TEXT,
    production_start INTEGER,
    production_end INTEGER,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS releases (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    casting_id INTEGER NOT NULL REFERENCES castings(id),
    collection_id INTEGER NOT NULL REFERENCES collections(id),
    year INTEGER NOT NULL,
    release_name TEXT NOT NULL,
    toy_index INTEGER,
    wiki_slug TEXT,
    wiki_url TEXT,
    series_position TEXT,
    release_code TEXT,
    avatar_url TEXT,
    is_treasure_hunt BOOLEAN DEFAULT 0,
    is_super_treasure_hunt BOOLEAN DEFAULT 0,
    color TEXT,
    tampo TEXT,
    wheel_type TEXT,
    base_color TEXT,
    base_type TEXT,
    window_color TEXT,
    interior_color TEXT,
    country TEXT,
    notes TEXT,
    base_codes TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_releases_casting ON releases(casting_id);
"""

COLLECTION_COLUMNS = tuple(f.name for f in fields(CollectionRow))
CASTING_COLUMNS = tuple(f.name for f in fields(CastingRow))
RELEASE_COLUMNS = tuple(f.name for f in fields(ReleaseRow))

# batch_size * columns_per_row must stay within the statement variable limit
BATCH_SIZE_COLLECTIONS = SQL_VARIABLE_LIMIT // len(COLLECTION_COLUMNS)
BATCH_SIZE_CASTINGS = SQL_VARIABLE_LIMIT // len(CASTING_COLUMNS)
BATCH_SIZE_RELEASES = SQL_VARIABLE_LIMIT // len(RELEASE_COLUMNS)
BATCH_SIZE_QUERY = SQL_VARIABLE_LIMIT  # single-column "IN (...)" lists

# Detail-only casting fields survive index runs that carry NULLs
_CASTING_KEEP_IF_NULL = (
    "wiki_slug", "avatar_url", "designer_name", "designer_slug",
    "description", "production_start", "production_end",
)


def get_connection(db_path: str = DB_PATH) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def init_schema(conn: sqlite3.Connection):
    conn.executescript(SCHEMA)
    seed_categories(conn)


def init_db(db_path: str = DB_PATH):
    conn = get_connection(db_path)
    init_schema(conn)
    conn.close()


def seed_categories(conn: sqlite3.Connection):
    conn.executemany(
        """INSERT INTO collection_categories (code, name, description) VALUES (?, ?, ?)
        ON CONFLICT(code) DO UPDATE SET name = excluded.name, description = excluded.description""",
        COLLECTION_CATEGORIES,
    )
    conn.commit()


def batched(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


def _insert_sql(table: str, columns: Sequence[str], row_count: int) -> str:
    placeholders = "(" + ", ".join("?" for _ in columns) + ")"
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES "
        + ", ".join(placeholders for _ in range(row_count))
    )


def _write_batches(
    conn: sqlite3.Connection,
    table: str,
    columns: Sequence[str],
    rows: Sequence,
    batch_size: int,
    conflict_clause: str = "",
):
    """Write rows in multi-row statements, committing each batch on its own."""
    total = (len(rows) + batch_size - 1) // batch_size
    for n, batch in enumerate(batched(rows, batch_size), 1):
        sql = _insert_sql(table, columns, len(batch)) + conflict_clause
        params = [value for row in batch for value in astuple(row)]
        try:
            conn.execute(sql, params)
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Writing {table} batch {n}/{total} failed: {e}") from e
        logger.info(f"[db] Wrote {table} batch {n}/{total} ({len(batch)} items)")


def upsert_collections(conn: sqlite3.Connection, rows: Sequence[CollectionRow]):
    _write_batches(
        conn, "collections", COLLECTION_COLUMNS, rows, BATCH_SIZE_COLLECTIONS,
        " ON CONFLICT(code) DO UPDATE SET name = excluded.name, updated_at = CURRENT_TIMESTAMP",
    )


def upsert_castings(conn: sqlite3.Connection, rows: Sequence[CastingRow]):
    keep = ", ".join(
        f"{col} = COALESCE(excluded.{col}, castings.{col})" for col in _CASTING_KEEP_IF_NULL
    )
    _write_batches(
        conn, "castings", CASTING_COLUMNS, rows, BATCH_SIZE_CASTINGS,
        f" ON CONFLICT(code) DO UPDATE SET name = excluded.name, {keep}, "
        "updated_at = CURRENT_TIMESTAMP",
    )


def insert_releases(conn: sqlite3.Connection, rows: Sequence[ReleaseRow]):
    _write_batches(conn, "releases", RELEASE_COLUMNS, rows, BATCH_SIZE_RELEASES)


def delete_releases_for_castings(conn: sqlite3.Connection, casting_ids: Sequence[int]) -> int:
    """Remove every release of the given castings. Returns rows deleted."""
    deleted = 0
    for batch in batched(list(casting_ids), BATCH_SIZE_QUERY):
        placeholders = ", ".join("?" for _ in batch)
        try:
            cursor = conn.execute(
                f"DELETE FROM releases WHERE casting_id IN ({placeholders})", list(batch)
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Clearing releases failed: {e}") from e
        deleted += cursor.rowcount
    return deleted


def get_collection_ids(conn: sqlite3.Connection) -> dict[str, int]:
    try:
        rows = conn.execute("SELECT id, code FROM collections").fetchall()
    except sqlite3.Error as e:
        raise PersistenceError(f"Reading collections failed: {e}") from e
    return {r["code"]: r["id"] for r in rows}


def get_casting_ids(conn: sqlite3.Connection, codes: Iterable[str]) -> dict[str, int]:
    ids: dict[str, int] = {}
    for batch in batched(list(codes), BATCH_SIZE_QUERY):
        placeholders = ", ".join("?" for _ in batch)
        try:
            rows = conn.execute(
                f"SELECT id, code FROM castings WHERE code IN ({placeholders})", list(batch)
            ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Reading castings failed: {e}") from e
        ids.update({r["code"]: r["id"] for r in rows})
    return ids


def apply_photo_fallbacks(conn: sqlite3.Connection, fallbacks: dict[str, str]) -> int:
    """Point avatars whose upload failed back at the original image URL.

    fallbacks maps storage reference → source URL.
    """
    updated = 0
    for table in ("castings", "releases"):
        try:
            for reference, source_url in fallbacks.items():
                cursor = conn.execute(
                    f"UPDATE {table} SET avatar_url = ? WHERE avatar_url = ?",
                    (source_url, reference),
                )
                updated += cursor.rowcount
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Restoring {table} avatars failed: {e}") from e
    return updated


def count_rows(conn: sqlite3.Connection, table: str) -> int:
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
