"""Side-by-side comparison of variant snapshots.

The aggregator never raises on missing or partial data: each gap is reported
with an explicit sentinel so renderers cannot mistake it for a real value.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .models import (
    ABSENT,
    NOT_SPECIFIED,
    UNKNOWN,
    ComparisonResult,
    FallbackOverride,
    HotelCell,
    HotelEntry,
    PriceEntry,
    Total,
    VariantColumn,
    VariantSnapshot,
)

logger = logging.getLogger(__name__)

OverrideInput = Mapping[str, Union[FallbackOverride, Mapping[str, Any]]]


def _coerce_overrides(overrides: Optional[OverrideInput]) -> Dict[str, FallbackOverride]:
    coerced: Dict[str, FallbackOverride] = {}
    for source_id, entry in (overrides or {}).items():
        if isinstance(entry, FallbackOverride):
            coerced[str(source_id)] = entry
        elif isinstance(entry, Mapping):
            coerced[str(source_id)] = FallbackOverride.from_mapping(entry)
    return coerced


def _override_for(variant: VariantSnapshot, overrides: Mapping[str, FallbackOverride]) -> Optional[FallbackOverride]:
    if variant.source_variant_id is None:
        return None
    return overrides.get(variant.source_variant_id)


def column_keys(variants: Sequence[VariantSnapshot]) -> List[str]:
    """One key per column; repeated snapshot keys get a ``#<column>`` suffix."""
    keys: List[str] = []
    seen: set[str] = set()
    for position, variant in enumerate(variants, start=1):
        key = variant.key
        while key in seen:
            key = f"{key}#{position}"
        if key != variant.key:
            logger.info("Variant '%s' shares its key with an earlier column; using %s", variant.name, key)
        seen.add(key)
        keys.append(key)
    return keys


def build_day_axis(variants: Sequence[VariantSnapshot]) -> List[int]:
    return sorted({hotel.day_number for variant in variants for hotel in variant.hotel_snapshots})


def build_hotel_matrix(variants: Sequence[VariantSnapshot], day_axis: Sequence[int]) -> List[List[HotelEntry]]:
    matrix: List[List[HotelEntry]] = []
    for day in day_axis:
        row: List[HotelEntry] = []
        for variant in variants:
            hotel = variant.hotel_for_day(day)
            if hotel is None:
                row.append(NOT_SPECIFIED)
                continue
            row.append(
                HotelCell(
                    hotel_id=hotel.hotel_id,
                    hotel_name=hotel.hotel_name,
                    location_label=hotel.location_label,
                    room_category=hotel.room_category,
                    image_url=hotel.image_url,
                )
            )
        matrix.append(row)
    return matrix


def build_component_axis(
    variants: Sequence[VariantSnapshot], overrides: Mapping[str, FallbackOverride]
) -> List[str]:
    """Component names in first-seen order: structured pricing first, then overrides."""
    names: Dict[str, None] = {}
    for variant in variants:
        pricing = variant.primary_pricing
        if pricing is None:
            continue
        for component in pricing.components:
            names.setdefault(component.attribute_name, None)
    for variant in variants:
        override = _override_for(variant, overrides)
        if override is None:
            continue
        for component in override.components:
            names.setdefault(component.name, None)
    return list(names)


def _component_price(
    variant: VariantSnapshot, name: str, overrides: Mapping[str, FallbackOverride]
) -> PriceEntry:
    override = _override_for(variant, overrides)
    if override is not None:
        price = override.price_for(name)
        if price is not None:
            return price
    pricing = variant.primary_pricing
    if pricing is not None:
        component = pricing.component(name)
        if component is not None:
            return component.price
    return ABSENT


def build_price_matrix(
    variants: Sequence[VariantSnapshot],
    component_axis: Sequence[str],
    overrides: Mapping[str, FallbackOverride],
) -> List[List[PriceEntry]]:
    return [[_component_price(variant, name, overrides) for variant in variants] for name in component_axis]


def resolve_total(variant: VariantSnapshot, override: Optional[FallbackOverride] = None) -> Total:
    """Override total, else the stored total of the first pricing period, else ``UNKNOWN``.

    Zero and negative totals are unknown, never a zero-cost package.
    """
    if override is not None and override.total_cost is not None and override.total_cost > 0:
        return override.total_cost
    pricing = variant.primary_pricing
    if pricing is not None and pricing.total_price is not None and pricing.total_price > 0:
        return pricing.total_price
    return UNKNOWN


def best_value_keys(keys: Sequence[str], totals: Sequence[Total]) -> frozenset[str]:
    known = [(key, total) for key, total in zip(keys, totals) if not isinstance(total, str)]
    if not known:
        return frozenset()
    minimum = min(total for _, total in known)
    return frozenset(key for key, total in known if total == minimum)


def build_comparison(
    variants: Sequence[VariantSnapshot],
    overrides: Optional[OverrideInput] = None,
) -> ComparisonResult:
    """Compare ``variants`` column by column, in the order given."""
    if len(variants) < 2:
        logger.warning("Comparing %d variant(s); at least two are needed for a meaningful comparison", len(variants))
    resolved_overrides = _coerce_overrides(overrides)

    day_axis = build_day_axis(variants)
    component_axis = build_component_axis(variants, resolved_overrides)
    totals = [resolve_total(variant, _override_for(variant, resolved_overrides)) for variant in variants]
    keys = column_keys(variants)
    best = best_value_keys(keys, totals)

    meal_plans: List[str] = []
    room_counts: List[Union[int, str]] = []
    vehicle_types: List[str] = []
    for variant in variants:
        pricing = variant.primary_pricing
        if pricing is None:
            meal_plans.append(ABSENT)
            room_counts.append(ABSENT)
            vehicle_types.append(ABSENT)
            continue
        meal_plans.append(pricing.meal_plan_name or ABSENT)
        room_counts.append(pricing.number_of_rooms)
        vehicle_types.append(pricing.vehicle_type_name or ABSENT)

    unknown = [variant.name for variant, total in zip(variants, totals) if total == UNKNOWN]
    if unknown and len(unknown) < len(variants):
        logger.info("Best value computed without variant(s) of unknown total: %s", ", ".join(unknown))

    return ComparisonResult(
        variants=[
            VariantColumn(
                key=key,
                name=variant.name,
                price_modifier=variant.price_modifier,
                is_default=variant.is_default,
            )
            for key, variant in zip(keys, variants)
        ],
        day_axis=day_axis,
        hotel_matrix=build_hotel_matrix(variants, day_axis),
        component_axis=component_axis,
        price_matrix=build_price_matrix(variants, component_axis, resolved_overrides),
        variant_totals=totals,
        best_value=best,
        meal_plans=meal_plans,
        room_counts=room_counts,
        vehicle_types=vehicle_types,
    )
