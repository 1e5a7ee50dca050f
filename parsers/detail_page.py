"""Parser for a single model (casting) page on the wiki."""

import logging
from typing import Optional

from config import CONTENT_CONTAINER_CLASS, TABLE_MARKER_CLASS
from errors import MissingLandmarkError
from extraction.models import (
    DesignerRef,
    DetailRecord,
    ModelInfo,
    SeriesLink,
    VariationRecord,
)
from extraction.rules import (
    classify_treasure_hunt,
    parse_base_codes,
    parse_year_range,
    slug_to_code,
    split_base,
)
from parsers.base import WikiBaseParser
from parsers.query import (
    find_by_attribute,
    find_by_class,
    find_by_tag,
    find_content_between_headers,
    get_text,
)
from parsers.tree import Element

logger = logging.getLogger(__name__)

# Versions table column positions
COL_INDEX = 0
COL_YEAR = 1
COL_SERIES = 2
COL_COLOR = 3
COL_TAMPO = 4
COL_BASE = 5
COL_WINDOW = 6
COL_INTERIOR = 7
COL_WHEELS = 8
COL_TOY_NUMBER = 9
COL_COUNTRY = 10
COL_NOTES = 11
MIN_VARIATION_CELLS = 12

# data-source values of the infobox rows
_INFOBOX_FIELDS = {
    "designer": "designer",
    "number": "release_code",
    "years": "production_years",
    "series": "debut_series",
}


def _clean(text: str) -> Optional[str]:
    text = " ".join(text.split())
    return text or None


class DetailPageParser(WikiBaseParser):
    """
    /wiki/{slug} — aside[role=region] infobox with div[data-source=...] rows,
    description paragraphs under the first h2, and a wikitable of versions.
    """

    name = "detail"

    def scrape_model(self, slug: str) -> DetailRecord:
        document = self.fetch_document(self.page_url(slug), slug, slug=slug)
        return self.parse_detail(document, slug)

    def parse_detail(self, document: Element, slug: str) -> DetailRecord:
        asides = find_by_attribute("aside", "role", "region", document)
        if not asides:
            raise MissingLandmarkError(f"No infobox on page {slug}", slug=slug)
        aside = asides[0]

        titles = find_by_tag("h2", aside, recursive=True)
        name = get_text(titles[0]).strip() if titles else ""
        if not name:
            name = slug.replace("_", " ")

        fields = self._infobox_fields(aside)
        designer = None
        if "designer" in fields:
            designer_name, designer_slug = self.extract_model(fields["designer"])
            if designer_name:
                designer = DesignerRef(name=designer_name, slug=designer_slug)

        start, end = parse_year_range(
            get_text(fields["production_years"]) if "production_years" in fields else ""
        )

        debut_series = None
        if "debut_series" in fields:
            links = self.extract_series(fields["debut_series"])
            if links:
                debut_series = SeriesLink(name=links[0].name, slug=links[0].slug)

        containers = find_by_class(CONTENT_CONTAINER_CLASS, document)
        content = containers[0] if containers else document
        description = find_content_between_headers(content)

        return DetailRecord(
            model=ModelInfo(name=name, slug=slug, code=slug_to_code(slug)),
            designer=designer,
            release_code=_clean(get_text(fields["release_code"])) if "release_code" in fields else None,
            production_start=start,
            production_end=end,
            debut_series=debut_series,
            description=description.strip() if description else None,
            variations=self._parse_variations(content, slug),
        )

    def _infobox_fields(self, aside: Element) -> dict[str, Element]:
        fields = {}
        for source, field_name in _INFOBOX_FIELDS.items():
            nodes = find_by_attribute("div", "data-source", source, aside)
            if not nodes:
                continue
            values = find_by_class("pi-data-value", nodes[0])
            fields[field_name] = values[0] if values else nodes[0]
        return fields

    def _parse_variations(self, content: Element, slug: str) -> list[VariationRecord]:
        tables = find_by_class(TABLE_MARKER_CLASS, content)
        if not tables:
            logger.info(f"[{self.name}] {slug}: no versions table")
            return []

        table = tables[0]
        bodies = find_by_tag("tbody", table)
        rows = find_by_tag("tr", bodies[0] if bodies else table)
        variations = []
        for row in rows:
            cells = find_by_tag("td", row)
            if len(cells) < MIN_VARIATION_CELLS:
                continue
            variations.append(self._parse_variation(row, cells))
        return variations

    def _parse_variation(self, row: Element, cells: list[Element]) -> VariationRecord:
        series = [
            SeriesLink(name=s.name, slug=s.slug)
            for s in self.extract_series(cells[COL_SERIES])
        ]
        is_th, is_sth = classify_treasure_hunt(s.slug for s in series)
        base_color, base_type = split_base(get_text(cells[COL_BASE]).strip())
        notes = _clean(get_text(cells[COL_NOTES]))
        photos = self.extract_image_links(row)

        return VariationRecord(
            mainline_index=get_text(cells[COL_INDEX]).strip(),
            year=get_text(cells[COL_YEAR]).strip(),
            series=series,
            color=_clean(get_text(cells[COL_COLOR])),
            tampo=_clean(get_text(cells[COL_TAMPO])),
            wheel_type=_clean(get_text(cells[COL_WHEELS])),
            base_color=base_color,
            base_type=base_type,
            window_color=_clean(get_text(cells[COL_WINDOW])),
            interior_color=_clean(get_text(cells[COL_INTERIOR])),
            release_code=get_text(cells[COL_TOY_NUMBER]).strip(),
            country=_clean(get_text(cells[COL_COUNTRY])),
            notes=notes,
            base_codes=parse_base_codes(notes or ""),
            is_treasure_hunt=is_th,
            is_super_treasure_hunt=is_sth,
            photo_url=photos[0] if photos else None,
        )
