"""Configuration for the die-cast catalogue scraper."""

import os

REQUEST_DELAY = float(os.environ.get("REQUEST_DELAY", "1.5"))  # seconds between requests
REQUEST_TIMEOUT = 15  # seconds
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_6) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

WIKI_BASE_URL = os.environ.get("WIKI_BASE_URL", "https://hotwheels.fandom.com/wiki")
WIKI_PATH_PREFIX = "/wiki/"
INDEX_PAGE_PATTERN = "List_of_{year}_Hot_Wheels"

DB_PATH = os.environ.get("DB_PATH", "catalog.db")

# Key-value cache
CACHE_PATH = os.environ.get("CACHE_PATH", "cache.db")
CACHE_VERSION = "v1"
CACHE_NAMESPACE = "scrape"
CACHE_DEFAULT_TTL = 60 * 5
CACHE_HTML_TTL = 60 * 5
CACHE_RESULTS_TTL = 60 * 60 * 24
CACHE_MAX_VALUE_BYTES = 25 * 1024 * 1024
RESULTS_CHUNK_SIZE = 20

# Bound parameters allowed per statement by the relational store
SQL_VARIABLE_LIMIT = 100

# Photo migration
BLOB_ROOT = os.environ.get("BLOB_ROOT", "blobs")
PHOTO_ENTITY_TYPE = "cars"
PHOTO_UPLOAD_WORKERS = int(os.environ.get("PHOTO_UPLOAD_WORKERS", "8"))

# Scheduled reprocessing
SYNC_YEARS = [
    y.strip() for y in os.environ.get("SYNC_YEARS", "2025,2026").split(",") if y.strip()
]
SYNC_INTERVAL_MINUTES = 60 * 24

# Table layout on the wiki
TABLE_MARKER_CLASS = "wikitable"
IMAGE_LINK_CLASS = "image"
NO_IMAGE_MARKER = "Image_Not_Available"
CONTENT_CONTAINER_CLASS = "mw-parser-output"
