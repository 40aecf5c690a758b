"""Variant snapshots and the side-by-side comparison engine."""

from .aggregator import build_comparison, resolve_total
from .models import (
    ABSENT,
    NOT_SPECIFIED,
    UNKNOWN,
    ComparisonResult,
    FallbackOverride,
    HotelCell,
    HotelSnapshot,
    PricingComponentSnapshot,
    PricingSnapshot,
    VariantColumn,
    VariantSnapshot,
)
from .snapshots import build_variant_snapshot, build_variant_snapshots, snapshot_from_record

__all__ = [
    "ABSENT",
    "NOT_SPECIFIED",
    "UNKNOWN",
    "ComparisonResult",
    "FallbackOverride",
    "HotelCell",
    "HotelSnapshot",
    "PricingComponentSnapshot",
    "PricingSnapshot",
    "VariantColumn",
    "VariantSnapshot",
    "build_comparison",
    "build_variant_snapshot",
    "build_variant_snapshots",
    "resolve_total",
    "snapshot_from_record",
]
