"""Build variant snapshots from edited variants or stored snapshot records."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from package_variants.services.models import Hotel, NamedRecord
from package_variants.variants.models import ItineraryDay, SeasonalPricingPeriod, Variant
from package_variants.variants.normalizer import (
    parse_number,
    pick,
    sort_periods,
    to_canonical_date,
    to_canonical_number,
)

from .models import HotelSnapshot, PricingComponentSnapshot, PricingSnapshot, VariantSnapshot

logger = logging.getLogger(__name__)

HotelLookup = Union[Mapping[str, Hotel], Iterable[Hotel]]
NamedLookup = Union[Mapping[str, NamedRecord], Iterable[NamedRecord], None]


def _index(records: Any) -> Dict[str, Any]:
    if records is None:
        return {}
    if isinstance(records, Mapping):
        return dict(records)
    return {record.id: record for record in records}


def _day_numbers_by_key(days: Sequence[ItineraryDay]) -> Dict[str, int]:
    lookup: Dict[str, int] = {}
    for day in days:
        if day.day_number is None:
            continue
        for key in day.lookup_keys:
            lookup.setdefault(key, day.day_number)
    return lookup


def _resolve_day_number(key: str, lookup: Mapping[str, int]) -> Optional[int]:
    if key in lookup:
        return lookup[key]
    # Legacy mappings keyed by a bare day number outlive the itinerary rows they came from.
    if key.isdigit():
        return int(key)
    return None


def build_hotel_snapshots(
    variant: Variant, days: Sequence[ItineraryDay], hotels: HotelLookup
) -> List[HotelSnapshot]:
    hotel_index = _index(hotels)
    day_lookup = _day_numbers_by_key(days)
    snapshots: Dict[int, HotelSnapshot] = {}
    for key, hotel_id in variant.hotel_mappings.items():
        day_number = _resolve_day_number(key, day_lookup)
        if day_number is None:
            logger.info("Variant '%s': skipping hotel mapping %s with no day number", variant.name, key)
            continue
        if day_number in snapshots:
            continue
        hotel = hotel_index.get(hotel_id)
        if hotel is None:
            logger.warning("Variant '%s': hotel %s for day %d not in catalog", variant.name, hotel_id, day_number)
            hotel = Hotel(id=hotel_id, name=hotel_id)
        snapshots[day_number] = HotelSnapshot(
            day_number=day_number,
            hotel_id=hotel.id,
            hotel_name=hotel.name,
            location_label=hotel.location_label,
            image_url=hotel.image_url,
        )
    return [snapshots[day] for day in sorted(snapshots)]


def _stored_total(period: SeasonalPricingPeriod) -> float:
    if period.total_price is not None and period.total_price > 0:
        return period.total_price
    return period.total_component_price


def build_pricing_snapshot(
    period: SeasonalPricingPeriod,
    *,
    meal_plans: NamedLookup = None,
    vehicle_types: NamedLookup = None,
    attributes: NamedLookup = None,
) -> PricingSnapshot:
    meal_plan_index = _index(meal_plans)
    vehicle_index = _index(vehicle_types)
    attribute_index = _index(attributes)

    meal_plan = meal_plan_index.get(period.meal_plan_id)
    vehicle = vehicle_index.get(period.vehicle_type_id) if period.vehicle_type_id else None
    components = []
    for component in period.pricing_components:
        attribute = attribute_index.get(component.attribute_id)
        name = component.attribute_name or (attribute.name if attribute else component.attribute_id)
        components.append(
            PricingComponentSnapshot(
                attribute_name=name,
                price=component.price,
                purchase_price=component.purchase_price,
                description=component.description,
            )
        )
    return PricingSnapshot(
        start_date=period.start_date,
        end_date=period.end_date,
        meal_plan_name=meal_plan.name if meal_plan else period.meal_plan_id,
        number_of_rooms=period.number_of_rooms,
        vehicle_type_name=vehicle.name if vehicle else period.vehicle_type_id,
        is_group_pricing=period.is_group_pricing,
        total_price=_stored_total(period),
        description=period.description,
        components=components,
    )


def build_variant_snapshot(
    variant: Variant,
    days: Sequence[ItineraryDay],
    hotels: HotelLookup,
    *,
    meal_plans: NamedLookup = None,
    vehicle_types: NamedLookup = None,
    attributes: NamedLookup = None,
    snapshot_id: Optional[str] = None,
) -> VariantSnapshot:
    """Freeze ``variant`` with catalog names resolved, ready for comparison."""
    pricing_snapshots = [
        build_pricing_snapshot(period, meal_plans=meal_plans, vehicle_types=vehicle_types, attributes=attributes)
        for period in sort_periods(variant.seasonal_pricings)
    ]
    hotel_snapshots = build_hotel_snapshots(variant, days, hotels)
    logger.debug(
        "Snapshot for '%s': %d hotel day(s), %d pricing period(s)",
        variant.name,
        len(hotel_snapshots),
        len(pricing_snapshots),
    )
    return VariantSnapshot(
        id=snapshot_id,
        source_variant_id=variant.id,
        name=variant.name,
        description=variant.description or None,
        is_default=variant.is_default,
        sort_order=variant.sort_order,
        price_modifier=variant.price_modifier,
        hotel_snapshots=hotel_snapshots,
        pricing_snapshots=pricing_snapshots,
    )


def build_variant_snapshots(
    variants: Iterable[Variant],
    days: Sequence[ItineraryDay],
    hotels: HotelLookup,
    **lookups: NamedLookup,
) -> List[VariantSnapshot]:
    hotel_index = _index(hotels)
    ordered = sorted(variants, key=lambda variant: variant.sort_order)
    return [build_variant_snapshot(variant, days, hotel_index, **lookups) for variant in ordered]


# ----------------------------------------------------------------------
# stored snapshot records


def _hotel_snapshot_from_record(raw: Mapping[str, Any]) -> Optional[HotelSnapshot]:
    day_number = parse_number(pick(raw, "day_number", "dayNumber"))
    if day_number is None:
        return None
    return HotelSnapshot(
        day_number=int(day_number),
        hotel_id=str(pick(raw, "hotel_id", "hotelId") or ""),
        hotel_name=str(pick(raw, "hotel_name", "hotelName") or ""),
        location_label=str(pick(raw, "location_label", "locationLabel") or ""),
        image_url=pick(raw, "image_url", "imageUrl"),
        room_category=pick(raw, "room_category", "roomCategory"),
    )


def _pricing_snapshot_from_record(raw: Mapping[str, Any]) -> PricingSnapshot:
    components = [
        PricingComponentSnapshot(
            attribute_name=str(pick(entry, "attribute_name", "attributeName") or ""),
            price=to_canonical_number(entry.get("price")),
            purchase_price=parse_number(pick(entry, "purchase_price", "purchasePrice")),
            description=entry.get("description") or None,
        )
        for entry in pick(raw, "components", "pricingComponentSnapshots") or []
        if isinstance(entry, Mapping)
    ]
    rooms = to_canonical_number(pick(raw, "number_of_rooms", "numberOfRooms"))
    return PricingSnapshot(
        start_date=to_canonical_date(pick(raw, "start_date", "startDate")),
        end_date=to_canonical_date(pick(raw, "end_date", "endDate")),
        meal_plan_name=str(pick(raw, "meal_plan_name", "mealPlanName") or ""),
        number_of_rooms=int(rooms) if rooms >= 1 else 1,
        vehicle_type_name=pick(raw, "vehicle_type_name", "vehicleTypeName"),
        is_group_pricing=bool(pick(raw, "is_group_pricing", "isGroupPricing")),
        total_price=parse_number(pick(raw, "total_price", "totalPrice")),
        description=raw.get("description") or None,
        components=components,
    )


def snapshot_from_record(raw: Mapping[str, Any]) -> VariantSnapshot:
    """Load a persisted variant snapshot, tolerating camelCase or snake_case keys."""
    hotels = [
        snapshot
        for snapshot in (
            _hotel_snapshot_from_record(entry)
            for entry in pick(raw, "hotel_snapshots", "hotelSnapshots") or []
            if isinstance(entry, Mapping)
        )
        if snapshot is not None
    ]
    pricings = [
        _pricing_snapshot_from_record(entry)
        for entry in pick(raw, "pricing_snapshots", "pricingSnapshots") or []
        if isinstance(entry, Mapping)
    ]
    return VariantSnapshot(
        id=raw.get("id") or None,
        source_variant_id=pick(raw, "source_variant_id", "sourceVariantId"),
        name=str(raw.get("name") or ""),
        description=raw.get("description") or None,
        is_default=bool(pick(raw, "is_default", "isDefault")),
        sort_order=int(to_canonical_number(pick(raw, "sort_order", "sortOrder"))),
        price_modifier=to_canonical_number(pick(raw, "price_modifier", "priceModifier")),
        hotel_snapshots=sorted(hotels, key=lambda snapshot: snapshot.day_number),
        pricing_snapshots=sorted(pricings, key=lambda snapshot: snapshot.start_date),
    )
