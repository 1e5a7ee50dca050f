"""Normalise scraped records and write them as collections, castings and releases.

Write order is fixed: collections → castings → releases, because releases
reference the other two by id. Every pass is idempotent (upsert by code, or
delete-then-insert for releases) so a failed run can simply be repeated.
"""

import logging
import sqlite3
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from config import WIKI_BASE_URL
from db import (
    delete_releases_for_castings,
    get_casting_ids,
    get_collection_ids,
    insert_releases,
    upsert_castings,
    upsert_collections,
)
from errors import ParseError
from extraction.models import DetailRecord
from extraction.rules import (
    classify_treasure_hunt,
    infer_category_code,
    parse_index,
    slug_to_code,
)
from models import CastingRow, CollectionRow, ModelRef, RawCatalogRecord, ReleaseRow, SeriesRef
from storage import PhotoMigrationJob, PhotoMigrator, photo_codes, photo_key, reference_for

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """State for one upsert run. Never shared between runs."""

    year: str
    records: list[RawCatalogRecord]
    migrate_photos: bool = False
    casting_details: dict[str, CastingRow] = field(default_factory=dict)
    avatars: list[list[str]] = field(default_factory=list)
    collection_ids: dict[str, int] = field(default_factory=dict)
    casting_ids: dict[str, int] = field(default_factory=dict)
    photo_job: Optional[PhotoMigrationJob] = None


@dataclass
class UpsertSummary:
    year: str
    collections: int = 0
    castings: int = 0
    releases: int = 0
    releases_cleared: int = 0
    skipped: int = 0
    photo_job: Optional[PhotoMigrationJob] = None


def casting_code(model: ModelRef) -> str:
    return slug_to_code(model.slug or model.name)


def avatar_references(records: list[RawCatalogRecord], use_storage: bool) -> list[list[str]]:
    """Per record, the photo references rows should point at.

    With storage enabled these are storage references computed up front so rows
    can be written before any upload has happened.
    """
    if not use_storage:
        return [list(r.photo_urls) for r in records]
    return [
        [reference_for(photo_key(r, i, url, code)) for i, url in enumerate(r.photo_urls)]
        for r, code in zip(records, photo_codes(records), strict=True)
    ]


def collect_collections(records: Iterable[RawCatalogRecord]) -> list[CollectionRow]:
    """One row per distinct series code; the first name seen wins."""
    unique: dict[str, CollectionRow] = {}
    for record in records:
        for series in record.series:
            code = slug_to_code(series.slug)
            if code and code not in unique:
                unique[code] = CollectionRow(
                    code=code,
                    name=series.name,
                    wiki_slug=series.slug,
                    category_code=infer_category_code(series.slug, series.name),
                )
    return list(unique.values())


def collect_castings(
    records: list[RawCatalogRecord],
    avatars: list[list[str]],
    details: Optional[dict[str, CastingRow]] = None,
) -> list[CastingRow]:
    """One row per distinct model code; the first record seen wins."""
    details = details or {}
    unique: dict[str, CastingRow] = {}
    for record, refs in zip(records, avatars, strict=True):
        code = casting_code(record.model)
        if not code or code in unique:
            continue
        avatar = refs[0] if refs else None
        if code in details:
            row = details[code]
            unique[code] = replace(row, avatar_url=row.avatar_url or avatar)
        else:
            unique[code] = CastingRow(
                code=code,
                name=record.model.name,
                wiki_slug=record.model.slug,
                avatar_url=avatar,
            )
    for code, row in details.items():
        unique.setdefault(code, row)
    return list(unique.values())


def build_release(
    record: RawCatalogRecord,
    avatars: list[str],
    collection_ids: dict[str, int],
    casting_ids: dict[str, int],
    default_year: str = "",
) -> Optional[ReleaseRow]:
    """Release row for a record, or None when its model or primary series is unknown."""
    if not record.model.slug:
        return None
    casting_id = casting_ids.get(casting_code(record.model))
    primary = record.primary_series
    if casting_id is None or primary is None:
        return None
    collection_id = collection_ids.get(slug_to_code(primary.slug))
    if collection_id is None:
        return None
    year = parse_index(record.year) or parse_index(default_year)
    if year is None:
        return None

    is_th, is_sth = classify_treasure_hunt(s.slug for s in record.series)
    row = ReleaseRow(
        casting_id=casting_id,
        collection_id=collection_id,
        year=year,
        release_name=record.model.name,
        toy_index=parse_index(record.mainline_index),
        wiki_slug=record.model.slug,
        wiki_url=f"{WIKI_BASE_URL}/{record.model.slug}",
        series_position=record.series_position or None,
        release_code=record.release_code or None,
        avatar_url=avatars[0] if avatars else None,
        is_treasure_hunt=is_th,
        is_super_treasure_hunt=is_sth,
    )
    variation = record.variation
    if variation:
        row.color = variation.color
        row.tampo = variation.tampo
        row.wheel_type = variation.wheel_type
        row.base_color = variation.base_color
        row.base_type = variation.base_type
        row.window_color = variation.window_color
        row.interior_color = variation.interior_color
        row.country = variation.country
        row.notes = variation.notes
        row.base_codes = ", ".join(variation.base_codes) or None
    return row


# --- Passes ---


def collections_pass(conn: sqlite3.Connection, ctx: RunContext) -> int:
    rows = collect_collections(ctx.records)
    if not rows:
        logger.info("[upsert] No collections to upsert")
    else:
        upsert_collections(conn, rows)
        logger.info(f"[upsert] Upserted {len(rows)} collections")
    ctx.collection_ids = get_collection_ids(conn)
    return len(rows)


def castings_pass(
    conn: sqlite3.Connection, ctx: RunContext, migrator: Optional[PhotoMigrator] = None
) -> int:
    ctx.avatars = avatar_references(ctx.records, ctx.migrate_photos)
    rows = collect_castings(ctx.records, ctx.avatars, ctx.casting_details)
    if not rows:
        logger.info("[upsert] No castings to upsert")
        return 0

    upsert_castings(conn, rows)
    ctx.casting_ids = get_casting_ids(conn, [r.code for r in rows])
    logger.info(f"[upsert] Upserted {len(rows)} castings")

    if migrator and ctx.migrate_photos:
        ctx.photo_job = migrator.submit(ctx.records)
    return len(rows)


def releases_pass(conn: sqlite3.Connection, ctx: RunContext) -> tuple[int, int, int]:
    """Returns (inserted, cleared, skipped)."""
    rows = []
    skipped = 0
    for record, refs in zip(ctx.records, ctx.avatars, strict=True):
        row = build_release(record, refs, ctx.collection_ids, ctx.casting_ids, ctx.year)
        if row is None:
            skipped += 1
            logger.debug(f"[upsert] Skipping release {record.release_code} ({record.model.name})")
            continue
        rows.append(row)

    if not rows:
        logger.info("[upsert] No releases to insert")
        return 0, 0, skipped

    casting_ids = list(dict.fromkeys(r.casting_id for r in rows))
    cleared = delete_releases_for_castings(conn, casting_ids)
    logger.info(f"[upsert] Cleared {cleared} releases for {len(casting_ids)} castings")

    insert_releases(conn, rows)
    logger.info(f"[upsert] Inserted {len(rows)} releases ({skipped} skipped)")
    return len(rows), cleared, skipped


def run_upsert(
    conn: sqlite3.Connection,
    records: list[RawCatalogRecord],
    year: str = "",
    migrator: Optional[PhotoMigrator] = None,
    casting_details: Optional[dict[str, CastingRow]] = None,
) -> UpsertSummary:
    """Write records through the three passes.

    Photo uploads, when a migrator is given, are left running; the returned
    summary carries the job handle. PersistenceError aborts the run.
    """
    year = str(year)
    summary = UpsertSummary(year=year)
    if not records and not casting_details:
        logger.info(f"[upsert] No items for {year or 'run'}")
        return summary

    ctx = RunContext(
        year=year,
        records=records,
        migrate_photos=migrator is not None,
        casting_details=casting_details or {},
    )
    logger.info(f"[upsert] Starting upsert of {len(records)} items ({year or 'detail'})")

    summary.collections = collections_pass(conn, ctx)
    summary.castings = castings_pass(conn, ctx, migrator)
    summary.releases, summary.releases_cleared, summary.skipped = releases_pass(conn, ctx)
    summary.photo_job = ctx.photo_job

    logger.info(
        f"[upsert] Done {year}: {summary.collections} collections, "
        f"{summary.castings} castings, {summary.releases} releases"
    )
    return summary


# --- Detail refresh ---


def casting_row_from_detail(detail: DetailRecord) -> CastingRow:
    return CastingRow(
        code=detail.model.code,
        name=detail.model.name,
        wiki_slug=detail.model.slug,
        designer_name=detail.designer.name if detail.designer else None,
        designer_slug=detail.designer.slug if detail.designer else None,
        description=detail.description,
        production_start=detail.production_start,
        production_end=detail.production_end,
    )


def records_from_detail(detail: DetailRecord) -> list[RawCatalogRecord]:
    """One catalogue record per version row of a model page."""
    model = ModelRef(name=detail.model.name, slug=detail.model.slug)
    return [
        RawCatalogRecord(
            release_code=v.release_code,
            mainline_index=v.mainline_index,
            model=model,
            series=[SeriesRef(name=s.name, slug=s.slug) for s in v.series],
            photo_urls=[v.photo_url] if v.photo_url else [],
            year=v.year,
            variation=v,
        )
        for v in detail.variations
    ]


def upsert_detail(
    conn: sqlite3.Connection, detail: DetailRecord, migrator: Optional[PhotoMigrator] = None
) -> UpsertSummary:
    year = str(detail.production_start or "")
    return run_upsert(
        conn,
        records_from_detail(detail),
        year=year,
        migrator=migrator,
        casting_details={detail.model.code: casting_row_from_detail(detail)},
    )


def refresh_models(
    conn: sqlite3.Connection,
    parser,
    slugs: Iterable[str],
    migrator: Optional[PhotoMigrator] = None,
) -> list[UpsertSummary]:
    """Scrape and store each model page. Unparseable pages are logged and skipped."""
    summaries = []
    for slug in slugs:
        try:
            detail = parser.scrape_model(slug)
        except ParseError as e:
            logger.warning(f"[upsert] [{e.context}] {e}, skipping")
            continue
        summaries.append(upsert_detail(conn, detail, migrator))
    return summaries
