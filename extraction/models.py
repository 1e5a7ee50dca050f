"""Pydantic models for detail-page extraction."""

from pydantic import BaseModel, Field


class SeriesLink(BaseModel):
    name: str
    slug: str


class DesignerRef(BaseModel):
    name: str
    slug: str | None = None


class ModelInfo(BaseModel):
    name: str
    slug: str
    code: str


class VariationRecord(BaseModel):
    """One row of the versions table on a model page."""

    mainline_index: str = ""
    year: str = ""
    series: list[SeriesLink] = Field(default_factory=list)
    color: str | None = None
    tampo: str | None = None
    wheel_type: str | None = None
    base_color: str | None = None
    base_type: str | None = None
    window_color: str | None = None
    interior_color: str | None = None
    release_code: str = ""
    country: str | None = None
    notes: str | None = None
    base_codes: list[str] = Field(default_factory=list)
    is_treasure_hunt: bool = False
    is_super_treasure_hunt: bool = False
    photo_url: str | None = None


class DetailRecord(BaseModel):
    """Structured fields read from a single model page."""

    model: ModelInfo
    designer: DesignerRef | None = None
    release_code: str | None = None
    production_start: int | None = None
    production_end: int | None = None  # None = still in production
    debut_series: SeriesLink | None = None
    description: str | None = None
    variations: list[VariationRecord] = Field(default_factory=list)
