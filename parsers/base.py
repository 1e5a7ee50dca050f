"""Base parser for hotwheels.fandom wiki pages."""

import logging
import time
from typing import Optional
from urllib.parse import unquote

import requests

from cache import CacheService, html_key
from config import (
    CACHE_HTML_TTL,
    IMAGE_LINK_CLASS,
    NO_IMAGE_MARKER,
    REQUEST_DELAY,
    REQUEST_TIMEOUT,
    USER_AGENT,
    WIKI_BASE_URL,
    WIKI_PATH_PREFIX,
)
from errors import FetchError
from models import SeriesRef
from parsers.query import find_by_tag, get_attribute, get_text
from parsers.tree import Element, parse_html

logger = logging.getLogger(__name__)


class WikiBaseParser:
    """Shared fetching and link helpers for wiki pages."""

    name = "wiki"

    def __init__(
        self,
        cache: Optional[CacheService] = None,
        session: Optional[requests.Session] = None,
        base_url: str = WIKI_BASE_URL,
        request_delay: float = REQUEST_DELAY,
    ):
        self.cache = cache
        self.base_url = base_url.rstrip("/")
        self.request_delay = request_delay
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept-Language": "en-US,en;q=0.9",
        })

    def page_url(self, page: str) -> str:
        return f"{self.base_url}/{page}"

    def fetch_html(self, url: str, cache_name: str, year: str | None = None, slug: str | None = None) -> str:
        """Return page HTML, from cache when a fresh copy exists.

        Raises FetchError on network failure or a non-2xx response.
        """
        key = html_key(cache_name)
        if self.cache:
            html = self.cache.get(key)
            if html:
                logger.info(f"[{self.name}] HTML for {cache_name} found in cache")
                return html

        try:
            resp = self.session.get(url, timeout=REQUEST_TIMEOUT)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"[{self.name}] Failed to fetch {url}: {e}")
            raise FetchError(f"Failed to fetch {url}: {e}", year=year, slug=slug) from e
        if self.request_delay:
            time.sleep(self.request_delay)

        html = resp.text
        if self.cache and self.cache.set(key, html, CACHE_HTML_TTL):
            logger.info(f"[{self.name}] HTML for {cache_name} cached")
        return html

    def fetch_document(self, url: str, cache_name: str, **context) -> Element:
        return parse_html(self.fetch_html(url, cache_name, **context))

    # --- Shared extraction helpers ---

    @staticmethod
    def slug_from_href(href: str) -> Optional[str]:
        """'/wiki/HW_Wagons_(2025)' → 'HW_Wagons_(2025)'. None for non-wiki links."""
        if not href:
            return None
        index = href.find(WIKI_PATH_PREFIX)
        if index == -1:
            return None
        slug = href[index + len(WIKI_PATH_PREFIX):]
        # Red links carry '?action=edit&redlink=1'
        slug = slug.split("?", 1)[0]
        return unquote(slug) or None

    def extract_model(self, cell: Element) -> tuple[str, Optional[str]]:
        """Name and slug of the model in a cell.

        The first wiki anchor in document order provides the slug; the name is
        the whole cell text so suffixes outside the anchor are kept.
        """
        text = get_text(cell).strip()
        for anchor in find_by_tag("a", cell, recursive=True):
            slug = self.slug_from_href(get_attribute(anchor, "href"))
            if slug:
                return text, slug
        return text, None

    def extract_series(self, cell: Element) -> list[SeriesRef]:
        """Every linked series in a cell, deduplicated by slug."""
        series: list[SeriesRef] = []
        seen: set[str] = set()
        for anchor in find_by_tag("a", cell, recursive=True):
            name = get_text(anchor).strip()
            slug = self.slug_from_href(get_attribute(anchor, "href"))
            if not name or not slug or slug in seen:
                continue
            seen.add(slug)
            series.append(SeriesRef(name=name, slug=slug))
        return series

    @staticmethod
    def extract_image_links(node: Element) -> list[str]:
        """hrefs of image anchors, skipping the 'no image' placeholder."""
        links = []
        for anchor in find_by_tag("a", node, recursive=True):
            classes = get_attribute(anchor, "class").split()
            href = get_attribute(anchor, "href")
            if IMAGE_LINK_CLASS not in classes or not href:
                continue
            if NO_IMAGE_MARKER in href:
                continue
            links.append(href)
        return links
