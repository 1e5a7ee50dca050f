#!/usr/bin/env python3
"""Main entry point for the die-cast catalogue scraper."""

import argparse
import logging
import sys
from typing import Callable

import requests
from dotenv import load_dotenv
load_dotenv()

from cache import CacheService, SqliteKVStore, read_results
from config import BLOB_ROOT, CACHE_PATH, DB_PATH
from db import apply_photo_fallbacks, get_connection, init_db
from errors import FetchError, ParseError, PersistenceError
from parsers import DetailPageParser, IndexTableParser
from storage import LocalBlobStorage, PhotoMigrator
from upsert import UpsertSummary, refresh_models, run_upsert

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def get_cache(cache_path: str = CACHE_PATH) -> CacheService:
    return CacheService(SqliteKVStore(cache_path))


def scrape_year(year: str, cache: CacheService) -> list:
    """Scrape the index page of a year and cache the extracted records."""
    logger.info(f"--- Scraping {year} ---")
    return IndexTableParser(cache=cache).scrape_year(year)


def sync_year(
    year: str,
    cache: CacheService,
    from_cache: bool = False,
    photos: bool = True,
    db_path: str = DB_PATH,
    blob_root: str = BLOB_ROOT,
    session_factory: Callable[[], requests.Session] | None = None,
) -> UpsertSummary:
    """Scrape (or reuse cached results for) a year and write it to the database."""
    records = read_results(cache, year) if from_cache else None
    if records is None:
        records = scrape_year(year, cache)

    migrator = PhotoMigrator(LocalBlobStorage(blob_root), session_factory) if photos else None
    conn = get_connection(db_path)
    try:
        return run_upsert(conn, records, year=year, migrator=migrator)
    finally:
        _finish_photos(conn, migrator)
        conn.close()


def refresh(
    slugs: list[str],
    cache: CacheService,
    photos: bool = True,
    db_path: str = DB_PATH,
    blob_root: str = BLOB_ROOT,
    session_factory: Callable[[], requests.Session] | None = None,
) -> list[UpsertSummary]:
    migrator = PhotoMigrator(LocalBlobStorage(blob_root), session_factory) if photos else None
    conn = get_connection(db_path)
    try:
        return refresh_models(conn, DetailPageParser(cache=cache), slugs, migrator)
    finally:
        _finish_photos(conn, migrator)
        conn.close()


def _finish_photos(conn, migrator: PhotoMigrator | None):
    """Join background uploads and point failed avatars back at their source URL.

    Runs on failed runs too, since castings committed before the failure
    already reference their storage keys.
    """
    if not migrator:
        return
    try:
        for job in migrator.jobs:
            fallbacks = job.fallbacks()
            if fallbacks:
                updated = apply_photo_fallbacks(conn, fallbacks)
                logger.warning(f"  {len(fallbacks)} photos kept their source URL ({updated} rows)")
    except PersistenceError as e:
        logger.error(f"Restoring photo URLs failed: {e}")
    finally:
        migrator.shutdown()


def main():
    parser = argparse.ArgumentParser(description="Die-cast catalogue scraper")
    parser.add_argument(
        "--year", action="append", default=[], help="Year to scrape and upsert (repeatable)"
    )
    parser.add_argument(
        "--slug", action="append", default=[], help="Model page slug to refresh (repeatable)"
    )
    parser.add_argument(
        "--scrape-only", action="store_true", help="Scrape and cache results without writing to the DB"
    )
    parser.add_argument(
        "--from-cache", action="store_true", help="Use cached scrape results when available"
    )
    parser.add_argument(
        "--no-photos", action="store_true", help="Skip copying photos into blob storage"
    )
    parser.add_argument(
        "--clear-cache", nargs="?", const="", default=None, metavar="PREFIX",
        help="Delete cached entries (optionally only those under PREFIX)",
    )
    parser.add_argument(
        "--schedule", action="store_true", help="Reprocess configured years on a schedule"
    )
    args = parser.parse_args()

    init_db()
    cache = get_cache()
    try:
        if args.clear_cache is not None:
            removed = cache.delete_by_prefix(args.clear_cache)
            logger.info(f"=== Cleared {removed} cache entries ===")
            return

        if args.schedule:
            from scheduler import run_scheduler
            run_scheduler()
            return

        if not args.year and not args.slug:
            parser.print_help()
            return

        try:
            for year in args.year:
                if args.scrape_only:
                    records = scrape_year(year, cache)
                    logger.info(f"=== {year}: {len(records)} records cached ===")
                    continue
                summary = sync_year(
                    year, cache, from_cache=args.from_cache, photos=not args.no_photos
                )
                logger.info(
                    f"=== {year}: {summary.collections} collections, {summary.castings} castings, "
                    f"{summary.releases} releases ({summary.skipped} skipped) ==="
                )
            if args.slug:
                summaries = refresh(args.slug, cache, photos=not args.no_photos)
                logger.info(f"=== Refreshed {len(summaries)}/{len(args.slug)} models ===")
        except (FetchError, ParseError, PersistenceError) as e:
            context = f" [{e.context}]" if e.context else ""
            logger.error(f"Run failed{context}: {e}")
            sys.exit(1)
    finally:
        cache.close()


if __name__ == "__main__":
    main()
