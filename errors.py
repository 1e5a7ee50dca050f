"""Error types raised by the scraper and the upsert pipeline."""

from typing import Optional


class ScraperError(Exception):
    """Base class for all catalogue errors."""

    def __init__(self, message: str, year: Optional[str] = None, slug: Optional[str] = None):
        super().__init__(message)
        self.year = year
        self.slug = slug

    @property
    def context(self) -> str:
        if self.slug:
            return f"slug={self.slug}"
        if self.year:
            return f"year={self.year}"
        return ""


class FetchError(ScraperError):
    """Network failure or non-2xx response. Not retried."""


class ParseError(ScraperError):
    """A mandatory landmark is missing from a page."""


class NoTableFoundError(ParseError):
    pass


class MissingLandmarkError(ParseError):
    pass


class CacheReadError(ScraperError):
    """A cached chunk is missing or corrupt."""


class ValueTooLargeError(ScraperError):
    """The key-value store refused a value above its size ceiling."""


class PersistenceError(ScraperError):
    """A batch write failed. The run is aborted without rollback."""


class UploadError(ScraperError):
    """A single photo could not be copied into blob storage."""
