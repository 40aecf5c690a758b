"""Utilities to transform persisted variant and pricing payloads into canonical records.

Persisted numbers arrive as native numbers, numeric strings or wrapped decimals and
dates arrive as date objects or ISO strings. This module is the only place that
inspects those raw shapes; everything downstream works with floats and canonical
ISO-8601 strings.
"""
from __future__ import annotations

import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

from .models import PricingComponent, SeasonalPricingPeriod, Variant

logger = logging.getLogger(__name__)

_NUMERIC_METHODS = ("to_number", "toNumber")


def pick(raw: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = raw.get(name)
        if value is not None:
            return value
    return None


def _as_mapping(raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, Mapping):
        return raw
    to_dict = getattr(raw, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return {}


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ----------------------------------------------------------------------
# numbers


def parse_number(raw: Any) -> Optional[float]:
    """Return ``raw`` as a finite float, or ``None`` when it cannot be read as one."""
    if raw is None or isinstance(raw, bool):
        return None
    value: Any = raw
    if isinstance(raw, str):
        value = raw.strip().replace(",", "")
        if not value:
            return None
    elif not isinstance(raw, (int, float)):
        for method_name in _NUMERIC_METHODS:
            method = getattr(raw, method_name, None)
            if callable(method):
                try:
                    value = method()
                except (TypeError, ValueError, ArithmeticError, AttributeError):
                    return None
                break
    try:
        number = float(value)
    except (TypeError, ValueError, ArithmeticError):
        return None
    if not math.isfinite(number):
        return None
    return number


def to_canonical_number(raw: Any) -> float:
    """Return ``raw`` as a finite float, defaulting to ``0.0``. Never raises."""
    number = parse_number(raw)
    if number is None:
        if raw is not None:
            logger.debug("Could not parse numeric value %r; using 0", raw)
        return 0.0
    return number


# ----------------------------------------------------------------------
# dates


def parse_datetime(raw: Any) -> Optional[datetime]:
    """Return ``raw`` as an aware UTC datetime, or ``None`` when unparseable."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, date):
        parsed = datetime(raw.year, raw.month, raw.day)
    elif isinstance(raw, str):
        text = raw.strip()
        if text.endswith(("Z", "z")):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        logger.debug("Date value %r falls outside the supported UTC range", raw)
        return None


def format_datetime(value: datetime) -> str:
    # Zero-padded year keeps canonical strings sortable and re-parseable.
    utc = value.astimezone(timezone.utc).replace(tzinfo=None)
    return f"{utc.isoformat(timespec='microseconds')}Z"


def to_canonical_date(raw: Any) -> str:
    """Return ``raw`` as a canonical ISO-8601 UTC string, defaulting to now. Never raises."""
    parsed = parse_datetime(raw)
    if parsed is None:
        logger.debug("Could not parse date value %r; using current time", raw)
        parsed = datetime.now(timezone.utc)
    return format_datetime(parsed)


def canonical_day(value: str) -> date:
    """Calendar day of a canonical date string."""
    parsed = parse_datetime(value)
    if parsed is None:
        return datetime.now(timezone.utc).date()
    return parsed.date()


# ----------------------------------------------------------------------
# records


def normalize_component(raw: Any) -> PricingComponent:
    data = _as_mapping(raw)
    attribute = data.get("pricingAttribute") or {}
    attribute_name = pick(data, "attribute_name", "attributeName") or (
        attribute.get("name") if isinstance(attribute, Mapping) else None
    )
    purchase_raw = pick(data, "purchase_price", "purchasePrice")
    return PricingComponent(
        id=_optional_text(data.get("id")),
        attribute_id=str(pick(data, "attribute_id", "attributeId", "pricingAttributeId") or ""),
        attribute_name=_optional_text(attribute_name),
        price=to_canonical_number(data.get("price")),
        purchase_price=to_canonical_number(purchase_raw) if purchase_raw is not None else None,
        description=_optional_text(data.get("description")),
    )


def total_component_price(components: Iterable[PricingComponent]) -> float:
    """Sum of customer-facing component prices. Purchase prices never contribute."""
    return sum((component.price for component in components), 0.0)


def normalize_period(raw: Any) -> SeasonalPricingPeriod:
    data = _as_mapping(raw)
    components = [
        normalize_component(component)
        for component in (pick(data, "pricing_components", "pricingComponents") or [])
    ]
    rooms = to_canonical_number(pick(data, "number_of_rooms", "numberOfRooms"))
    total_raw = pick(data, "total_price", "totalPrice")
    return SeasonalPricingPeriod(
        id=_optional_text(data.get("id")),
        variant_id=_optional_text(pick(data, "variant_id", "variantId", "packageVariantId")),
        start_date=to_canonical_date(pick(data, "start_date", "startDate")),
        end_date=to_canonical_date(pick(data, "end_date", "endDate")),
        meal_plan_id=str(pick(data, "meal_plan_id", "mealPlanId") or ""),
        number_of_rooms=int(rooms) if rooms >= 1 else 1,
        vehicle_type_id=_optional_text(pick(data, "vehicle_type_id", "vehicleTypeId")),
        is_group_pricing=bool(pick(data, "is_group_pricing", "isGroupPricing")),
        description=_optional_text(data.get("description")),
        location_seasonal_period_id=_optional_text(
            pick(data, "location_seasonal_period_id", "locationSeasonalPeriodId")
        ),
        total_price=parse_number(total_raw),
        pricing_components=components,
        total_component_price=total_component_price(components),
    )


def sort_periods(periods: Iterable[SeasonalPricingPeriod]) -> List[SeasonalPricingPeriod]:
    # Canonical strings share one UTC format, so lexical order is chronological.
    return sorted(periods, key=lambda period: period.start_date)


def normalize(periods: Optional[Iterable[Any]]) -> List[SeasonalPricingPeriod]:
    """Normalise raw pricing periods and order them by start date."""
    if not periods:
        return []
    return sort_periods(normalize_period(period) for period in periods)


def _normalize_mappings(raw: Any) -> dict[str, str]:
    if isinstance(raw, Mapping):
        return {str(key): str(value) for key, value in raw.items() if value}
    mappings: dict[str, str] = {}
    for entry in raw or []:
        if not isinstance(entry, Mapping):
            continue
        hotel_id = pick(entry, "hotel_id", "hotelId")
        itinerary = entry.get("itinerary") or {}
        key = pick(entry, "itinerary_id", "itineraryId")
        if key is None and isinstance(itinerary, Mapping):
            key = pick(itinerary, "dayNumber", "day_number")
        if key is None:
            key = pick(entry, "day_number", "dayNumber")
        if key is None or not hotel_id:
            logger.debug("Skipping hotel mapping without a day key: %r", entry)
            continue
        mappings[str(key)] = str(hotel_id)
    return mappings


def normalize_variant(raw: Any) -> Variant:
    """Build an in-memory variant from a persisted variant record."""
    data = _as_mapping(raw)
    pricings = pick(data, "seasonal_pricings", "seasonalPricings", "tourPackagePricings") or []
    mappings = pick(data, "hotel_mappings", "hotelMappings", "variantHotelMappings") or {}
    return Variant(
        id=_optional_text(data.get("id")),
        name=str(data.get("name") or ""),
        description=str(data.get("description") or ""),
        is_default=bool(pick(data, "is_default", "isDefault")),
        sort_order=int(to_canonical_number(pick(data, "sort_order", "sortOrder"))),
        price_modifier=to_canonical_number(pick(data, "price_modifier", "priceModifier")),
        hotel_mappings=_normalize_mappings(mappings),
        seasonal_pricings=normalize(pricings),
    )


__all__ = [
    "canonical_day",
    "format_datetime",
    "normalize",
    "normalize_component",
    "normalize_period",
    "normalize_variant",
    "parse_datetime",
    "parse_number",
    "pick",
    "sort_periods",
    "to_canonical_date",
    "to_canonical_number",
    "total_component_price",
]
