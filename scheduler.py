"""APScheduler wrapper for periodic full-year reprocessing."""

import logging
import signal
import sys

from apscheduler.schedulers.blocking import BlockingScheduler

from config import SYNC_INTERVAL_MINUTES, SYNC_YEARS

logger = logging.getLogger(__name__)


def _sync_job():
    """Job function called by scheduler."""
    from scraper import get_cache, sync_year
    logger.info("=== Scheduled sync starting ===")
    cache = get_cache()
    try:
        for year in SYNC_YEARS:
            try:
                summary = sync_year(year, cache)
                logger.info(
                    f"=== Scheduled sync {year} done. {summary.releases} releases "
                    f"({summary.castings} castings, {summary.collections} collections) ==="
                )
            except Exception as e:
                logger.error(f"Scheduled sync for {year} failed: {e}")
    finally:
        cache.close()


def run_scheduler():
    """Start the blocking scheduler."""
    scheduler = BlockingScheduler()
    scheduler.add_job(
        _sync_job,
        "interval",
        minutes=SYNC_INTERVAL_MINUTES,
        id="catalog_sync",
        name="Catalogue Sync",
    )

    def shutdown(signum, frame):
        logger.info("Shutting down scheduler...")
        scheduler.shutdown(wait=False)
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    logger.info(
        f"Scheduler started. Reprocessing {', '.join(SYNC_YEARS)} every "
        f"{SYNC_INTERVAL_MINUTES} minutes. Press Ctrl+C to stop."
    )
    # Run immediately on start, then schedule
    _sync_job()
    scheduler.start()
