"""Variant domain models, normalisation, hotel mappings and seasonal pricing."""

from .editor import VariantList
from .hotel_mapping import (
    ApplyResult,
    apply_from_external_day_set,
    clear_mapping,
    copy_mappings,
    get_mapping,
    set_mapping,
)
from .models import ItineraryDay, PricingComponent, SeasonalPricingPeriod, Variant
from .normalizer import normalize, normalize_variant, to_canonical_date, to_canonical_number
from .pricing_store import SeasonalPricingStore, find_overlaps, period_for_date, validate_draft

__all__ = [
    "ApplyResult",
    "ItineraryDay",
    "PricingComponent",
    "SeasonalPricingPeriod",
    "SeasonalPricingStore",
    "Variant",
    "VariantList",
    "apply_from_external_day_set",
    "clear_mapping",
    "copy_mappings",
    "find_overlaps",
    "get_mapping",
    "normalize",
    "normalize_variant",
    "period_for_date",
    "set_mapping",
    "to_canonical_date",
    "to_canonical_number",
    "validate_draft",
]
