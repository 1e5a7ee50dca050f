"""Tests for the sync entry points and the scheduled job."""

import sqlite3
import threading

import pytest

import scheduler
import scraper
from cache import write_results
from db import get_connection, init_db
from errors import PersistenceError
from models import ModelRef, RawCatalogRecord, SeriesRef
from tests.conftest import FakeResponse, FakeSession

PHOTO = "https://static.wikia.nocookie.net/hotwheels/images/1/1a/Mazda_MX-5.jpg"
BROKEN = "https://static.wikia.nocookie.net/hotwheels/images/2/2b/Gone.png"


def _record(code, photo):
    return RawCatalogRecord(
        release_code=code,
        mainline_index="5",
        model=ModelRef(name=f"Car {code}", slug=f"Car_{code}"),
        series=[SeriesRef(name="HW Wagons", slug="HW_Wagons_(2025)")],
        series_position="5/10",
        photo_urls=[photo],
        year="2025",
    )


def _photo_threads():
    return [t for t in threading.enumerate() if t.name.startswith("photo")]


def _avatars(db_path, table):
    conn = get_connection(db_path)
    try:
        return {r[0] for r in conn.execute(f"SELECT avatar_url FROM {table}").fetchall()}
    finally:
        conn.close()


def test_sync_year_from_cache(cache, tmp_path):
    db_path = str(tmp_path / "catalog.db")
    init_db(db_path)
    write_results(cache, "2025", [_record("HYW18", PHOTO), _record("HYW19", BROKEN)])
    session = FakeSession({PHOTO: b"bytes", BROKEN: FakeResponse(BROKEN, status_code=404)})

    summary = scraper.sync_year(
        "2025", cache, from_cache=True, db_path=db_path,
        blob_root=str(tmp_path / "blobs"), session_factory=lambda: session,
    )

    assert summary.releases == 2
    assert _avatars(db_path, "releases") == {"blob://cars/2025/HYW18/0.jpg", BROKEN}
    assert _photo_threads() == []


def test_failed_sync_still_restores_photo_urls(cache, tmp_path):
    db_path = str(tmp_path / "catalog.db")
    init_db(db_path)
    conn = sqlite3.connect(db_path)
    conn.execute("DROP TABLE releases")
    conn.commit()
    conn.close()

    write_results(cache, "2025", [_record("HYW19", BROKEN)])
    session = FakeSession({BROKEN: FakeResponse(BROKEN, status_code=404)})

    with pytest.raises(PersistenceError):
        scraper.sync_year(
            "2025", cache, from_cache=True, db_path=db_path,
            blob_root=str(tmp_path / "blobs"), session_factory=lambda: session,
        )

    # Castings were committed before the failure; their avatar falls back
    assert _avatars(db_path, "castings") == {BROKEN}
    assert session.calls == [BROKEN]
    assert _photo_threads() == []


def test_scheduled_job_closes_cache_when_a_year_fails(monkeypatch):
    closed = []

    class TrackingCache:
        def close(self):
            closed.append(True)

    def failing_sync(year, cache):
        raise PersistenceError("disk full", year=year)

    monkeypatch.setattr(scraper, "get_cache", TrackingCache)
    monkeypatch.setattr(scraper, "sync_year", failing_sync)
    monkeypatch.setattr(scheduler, "SYNC_YEARS", ["2025", "2026"])

    scheduler._sync_job()

    assert closed == [True]
