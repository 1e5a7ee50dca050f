"""Structured extraction models and normalisation rules."""

from extraction.models import DetailRecord, VariationRecord
from extraction.rules import infer_category_code, slug_to_code

__all__ = ["DetailRecord", "VariationRecord", "infer_category_code", "slug_to_code"]
