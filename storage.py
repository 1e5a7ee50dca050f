"""Blob storage and background photo migration."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol

import requests

from config import BLOB_ROOT, PHOTO_ENTITY_TYPE, PHOTO_UPLOAD_WORKERS, REQUEST_TIMEOUT, USER_AGENT
from errors import UploadError
from extraction.rules import generate_photo_key, slug_to_code
from models import RawCatalogRecord

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "blob://"


class BlobStorage(Protocol):
    def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store bytes under key and return a storage reference."""
        ...


class LocalBlobStorage:
    """Stores blobs as files below a root directory."""

    def __init__(self, root: str = BLOB_ROOT):
        self.root = Path(root)

    def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return reference_for(key)


def reference_for(key: str) -> str:
    return f"{REFERENCE_PREFIX}{key}"


def photo_codes(records: list[RawCatalogRecord]) -> list[str]:
    """Per record, the code its photo keys are built from.

    The release code is used when it is set and not already taken in the same
    year. Otherwise the code falls back to model, index and row position, so
    variations without a toy number never share a key.
    """
    codes = []
    taken: set[tuple[str, str]] = set()
    for row, record in enumerate(records):
        code = record.release_code
        if not code or (record.year, code) in taken:
            model = slug_to_code(record.model.slug or record.model.name)
            code = f"{model}_{record.mainline_index}_{row}"
        taken.add((record.year, code))
        codes.append(code)
    return codes


def photo_key(record: RawCatalogRecord, index: int, url: str, code: Optional[str] = None) -> str:
    return generate_photo_key(
        PHOTO_ENTITY_TYPE, code or record.release_code, record.year, index, url
    )


def upload_image(
    storage: BlobStorage, session: requests.Session, source_url: str, key: str
) -> str:
    """Copy one external image into blob storage. Raises UploadError."""
    try:
        resp = session.get(source_url, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise UploadError(f"Failed to fetch image {source_url}: {e}") from e

    content_type = resp.headers.get("Content-Type", "image/jpeg")
    try:
        return storage.put(key, resp.content, content_type)
    except OSError as e:
        raise UploadError(f"Failed to store {key}: {e}") from e


@dataclass
class PhotoResult:
    source_url: str
    key: str
    reference: str  # storage reference, or source_url when the upload failed
    ok: bool


class PhotoMigrationJob:
    """Handle on a batch of uploads running in the background."""

    def __init__(self, futures: list[Future]):
        self.futures = futures

    @property
    def total(self) -> int:
        return len(self.futures)

    def done(self) -> bool:
        return all(f.done() for f in self.futures)

    def wait(self) -> list[PhotoResult]:
        """Block until every upload has finished."""
        results = [f.result() for f in self.futures]
        ok = sum(1 for r in results if r.ok)
        logger.info(f"[photos] Completed {ok}/{len(results)} photo uploads")
        return results

    def fallbacks(self) -> dict[str, str]:
        """Storage reference → source URL for every failed upload."""
        return {
            reference_for(r.key): r.source_url
            for r in self.wait()
            if not r.ok
        }


class PhotoMigrator:
    """Copies catalogue photos into blob storage on a bounded worker pool.

    Each worker thread gets its own HTTP session from session_factory.
    """

    def __init__(
        self,
        storage: BlobStorage,
        session_factory: Optional[Callable[[], requests.Session]] = None,
        max_workers: int = PHOTO_UPLOAD_WORKERS,
    ):
        self.storage = storage
        self.session_factory = session_factory or requests.Session
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="photo")
        self.jobs: list[PhotoMigrationJob] = []
        self._local = threading.local()
        self._lock = threading.Lock()
        self._uploaded = 0

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self.session_factory()
            session.headers.update({"User-Agent": USER_AGENT})
            self._local.session = session
        return session

    def _upload(self, source_url: str, key: str) -> PhotoResult:
        try:
            reference = upload_image(self.storage, self._session(), source_url, key)
        except UploadError as e:
            logger.error(f"[photos] {key}: {e}, keeping source URL")
            return PhotoResult(source_url=source_url, key=key, reference=source_url, ok=False)

        with self._lock:
            self._uploaded += 1
            if self._uploaded % 10 == 0:
                logger.info(f"[photos] Progress: {self._uploaded} photos uploaded")
        return PhotoResult(source_url=source_url, key=key, reference=reference, ok=True)

    def submit(self, records: list[RawCatalogRecord]) -> PhotoMigrationJob:
        """Schedule one upload per photo URL and return without waiting."""
        futures = []
        seen: set[str] = set()
        for record, code in zip(records, photo_codes(records), strict=True):
            for i, url in enumerate(record.photo_urls):
                key = photo_key(record, i, url, code)
                if key in seen:
                    continue
                seen.add(key)
                futures.append(self.executor.submit(self._upload, url, key))
        logger.info(f"[photos] Scheduled {len(futures)} uploads for {len(records)} records")
        job = PhotoMigrationJob(futures)
        self.jobs.append(job)
        return job

    def shutdown(self, wait: bool = True):
        self.executor.shutdown(wait=wait)
