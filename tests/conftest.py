"""Shared fixtures: in-memory databases and a fake HTTP session."""

import pytest
import requests

from cache import CacheService, SqliteKVStore
from db import get_connection, init_schema


class FakeResponse:
    def __init__(self, url: str, status_code: int = 200, text: str = "", content: bytes = b"",
                 headers: dict | None = None):
        self.url = url
        self.status_code = status_code
        self.text = text
        self.content = content or text.encode("utf-8")
        self.headers = headers or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} for {self.url}")


class FakeSession:
    """Serves canned responses by URL; unknown URLs raise ConnectionError."""

    def __init__(self, pages: dict | None = None):
        self.pages = pages or {}
        self.headers: dict = {}
        self.calls: list[str] = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        if url not in self.pages:
            raise requests.ConnectionError(f"unreachable: {url}")
        page = self.pages[url]
        if isinstance(page, FakeResponse):
            return page
        if isinstance(page, bytes):
            return FakeResponse(url, content=page, headers={"Content-Type": "image/jpeg"})
        return FakeResponse(url, text=page)


@pytest.fixture
def conn():
    connection = get_connection(":memory:")
    init_schema(connection)
    yield connection
    connection.close()


@pytest.fixture
def store():
    kv = SqliteKVStore(":memory:")
    yield kv
    kv.close()


@pytest.fixture
def cache(store):
    return CacheService(store)


@pytest.fixture
def fake_session():
    return FakeSession()
