"""Data models for the catalogue scraper."""

from dataclasses import dataclass, field, asdict
from typing import Optional

from extraction.models import VariationRecord


@dataclass
class SeriesRef:
    name: str
    slug: str


@dataclass
class ModelRef:
    name: str
    slug: Optional[str] = None


@dataclass
class RawCatalogRecord:
    """One row of a yearly index table (or one variation of a detail page)."""

    release_code: str
    mainline_index: str
    model: ModelRef
    series: list[SeriesRef] = field(default_factory=list)
    series_position: str = ""
    photo_urls: list[str] = field(default_factory=list)
    year: str = ""
    variation: Optional[VariationRecord] = None

    @property
    def primary_series(self) -> Optional[SeriesRef]:
        return self.series[0] if self.series else None

    def to_dict(self) -> dict:
        data = {
            "release_code": self.release_code,
            "mainline_index": self.mainline_index,
            "model": asdict(self.model),
            "series": [asdict(s) for s in self.series],
            "series_position": self.series_position,
            "photo_urls": list(self.photo_urls),
            "year": self.year,
            "variation": self.variation.model_dump() if self.variation else None,
        }
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "RawCatalogRecord":
        variation = data.get("variation")
        return cls(
            release_code=data["release_code"],
            mainline_index=data["mainline_index"],
            model=ModelRef(**data["model"]),
            series=[SeriesRef(**s) for s in data.get("series", [])],
            series_position=data.get("series_position", ""),
            photo_urls=list(data.get("photo_urls", [])),
            year=data.get("year", ""),
            variation=VariationRecord.model_validate(variation) if variation else None,
        )


# --- Persisted rows. Field order is the column order of the INSERT. ---


@dataclass
class CollectionRow:
    code: str
    name: str
    wiki_slug: str
    category_code: str = "mainline"


@dataclass
class CastingRow:
    code: str
    name: str
    wiki_slug: Optional[str] = None
    avatar_url: Optional[str] = None
    designer_name: Optional[str] = None
    designer_slug: Optional[str] = None
    description: Optional[str] = None
    production_start: Optional[int] = None
    production_end: Optional[int] = None


@dataclass
class ReleaseRow:
    casting_id: int
    collection_id: int
    year: int
    release_name: str
    toy_index: Optional[int] = None
    wiki_slug: Optional[str] = None
    wiki_url: Optional[str] = None
    series_position: Optional[str] = None
    release_code: Optional[str] = None
    avatar_url: Optional[str] = None
    is_treasure_hunt: bool = False
    is_super_treasure_hunt: bool = False
    color: Optional[str] = None
    tampo: Optional[str] = None
    wheel_type: Optional[str] = None
    base_color: Optional[str] = None
    base_type: Optional[str] = None
    window_color: Optional[str] = None
    interior_color: Optional[str] = None
    country: Optional[str] = None
    notes: Optional[str] = None
    base_codes: Optional[str] = None
