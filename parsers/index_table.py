"""Parser for the yearly 'List of {year} Hot Wheels' index pages."""

import logging

from cache import write_results
from config import INDEX_PAGE_PATTERN, TABLE_MARKER_CLASS
from errors import NoTableFoundError
from models import ModelRef, RawCatalogRecord
from parsers.base import WikiBaseParser
from parsers.query import find_by_class, find_by_tag, get_text
from parsers.tree import Element

logger = logging.getLogger(__name__)

MIN_CELLS = 5


class IndexTableParser(WikiBaseParser):
    """
    List_of_{year}_Hot_Wheels — table.wikitable > tbody > tr
    td[0] toy #, td[1] col #, td[2] model link, td[3] series links,
    td[4] series position, remaining cells hold a.image photo links.
    """

    name = "index"

    def index_url(self, year: str) -> str:
        return self.page_url(INDEX_PAGE_PATTERN.format(year=year))

    def scrape_year(self, year: str) -> list[RawCatalogRecord]:
        """Fetch, parse and cache the index page for a year."""
        year = str(year)
        document = self.fetch_document(self.index_url(year), year, year=year)
        records = self.parse_index(document, year)
        logger.info(f"[{self.name}] {year}: {len(records)} records")
        if self.cache:
            write_results(self.cache, year, records)
        return records

    def parse_index(self, document: Element, year: str) -> list[RawCatalogRecord]:
        tables = find_by_class(TABLE_MARKER_CLASS, document)
        if not tables:
            raise NoTableFoundError(f"No {TABLE_MARKER_CLASS} table for {year}", year=year)

        records = []
        for table in tables:
            bodies = find_by_tag("tbody", table)
            body = bodies[0] if bodies else table
            rows = find_by_tag("tr", body)
            for i, row in enumerate(rows, 1):
                record = self._parse_row(row, year)
                if record:
                    records.append(record)
                logger.debug(f"[{self.name}] {year}: row {i}/{len(rows)}")
        return records

    def _parse_row(self, row: Element, year: str) -> RawCatalogRecord | None:
        cells = find_by_tag("td", row)
        if len(cells) < MIN_CELLS:
            # Sub-headers and th-only rows
            return None

        name, slug = self.extract_model(cells[2])
        return RawCatalogRecord(
            release_code=get_text(cells[0]).strip(),
            mainline_index=get_text(cells[1]).strip(),
            model=ModelRef(name=name, slug=slug),
            series=self.extract_series(cells[3]),
            series_position=get_text(cells[4]).strip(),
            photo_urls=self.extract_image_links(row),
            year=year,
        )
