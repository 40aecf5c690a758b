from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from package_variants.variants.normalizer import (
    normalize,
    normalize_period,
    normalize_variant,
    parse_datetime,
    parse_number,
    to_canonical_date,
    to_canonical_number,
)


class _WrappedDecimal:
    def __init__(self, value: str) -> None:
        self._value = value

    def toNumber(self) -> float:
        return float(self._value)


def _raw_period(start: str, **overrides):
    period = {
        "id": f"period-{start}",
        "startDate": start,
        "endDate": "2025-12-31",
        "mealPlanId": "MAP",
        "numberOfRooms": "2",
        "pricingComponents": [
            {"pricingAttributeId": "attr-stay", "pricingAttribute": {"name": "Stay"}, "price": "8000", "purchasePrice": 6000},
            {"pricingAttributeId": "attr-transfer", "attributeName": "Transfer", "price": Decimal("1500.50")},
        ],
    }
    period.update(overrides)
    return period


def test_parse_number_accepts_common_shapes():
    assert parse_number(12) == 12.0
    assert parse_number("1,200.50") == 1200.5
    assert parse_number(Decimal("12.5")) == 12.5
    assert parse_number(_WrappedDecimal("99.9")) == 99.9


def test_parse_number_rejects_unreadable_values():
    assert parse_number(None) is None
    assert parse_number("") is None
    assert parse_number("abc") is None
    assert parse_number(True) is None
    assert parse_number(float("nan")) is None
    assert parse_number(float("inf")) is None


def test_to_canonical_number_defaults_to_zero():
    assert to_canonical_number("not a number") == 0.0
    assert to_canonical_number(None) == 0.0
    assert to_canonical_number(float("nan")) == 0.0
    assert to_canonical_number("42") == 42.0


def test_to_canonical_date_converts_to_utc():
    assert to_canonical_date(date(2025, 1, 1)) == "2025-01-01T00:00:00.000000Z"
    assert to_canonical_date("2025-01-01T05:30:00+05:30") == "2025-01-01T00:00:00.000000Z"
    assert to_canonical_date("2025-03-10T12:00:00.000Z") == "2025-03-10T12:00:00.000000Z"
    naive = datetime(2025, 6, 1, 8, 15)
    assert to_canonical_date(naive) == "2025-06-01T08:15:00.000000Z"


def test_to_canonical_date_defaults_to_now_for_unparseable_input():
    before = datetime.now(timezone.utc) - timedelta(seconds=1)
    value = to_canonical_date("next tuesday")
    parsed = parse_datetime(value)
    assert parsed is not None
    assert parsed >= before
    assert value.endswith("Z")


def test_normalize_period_reads_camel_case_payload():
    period = normalize_period(_raw_period("2025-04-01"))

    assert period.start_date == "2025-04-01T00:00:00.000000Z"
    assert period.meal_plan_id == "MAP"
    assert period.number_of_rooms == 2
    assert [component.name for component in period.pricing_components] == ["Stay", "Transfer"]
    assert period.pricing_components[0].purchase_price == 6000.0
    assert period.pricing_components[1].purchase_price is None


def test_total_component_price_excludes_purchase_price():
    period = normalize_period(_raw_period("2025-04-01"))
    assert period.total_component_price == 9500.5


def test_rooms_below_one_become_one():
    assert normalize_period(_raw_period("2025-04-01", numberOfRooms=0)).number_of_rooms == 1
    assert normalize_period(_raw_period("2025-04-01", numberOfRooms="junk")).number_of_rooms == 1


def test_normalize_sorts_by_start_date():
    periods = normalize([_raw_period("2025-09-01"), _raw_period("2025-01-15"), _raw_period("2025-05-01")])
    assert [period.start_date[:10] for period in periods] == ["2025-01-15", "2025-05-01", "2025-09-01"]


def test_normalize_is_idempotent():
    first = normalize([_raw_period("2025-09-01"), _raw_period("2025-01-15")])
    second = normalize([period.to_dict() for period in first])
    assert [period.to_dict() for period in second] == [period.to_dict() for period in first]


def test_normalize_handles_empty_input():
    assert normalize(None) == []
    assert normalize([]) == []


def test_normalize_variant_accepts_mapping_records():
    variant = normalize_variant(
        {
            "id": "v-1",
            "name": "Luxury",
            "isDefault": True,
            "sortOrder": "1",
            "priceModifier": "12.5",
            "variantHotelMappings": [
                {"itineraryId": "it-1", "hotelId": "h-1"},
                {"itinerary": {"dayNumber": 2}, "hotelId": "h-2"},
                {"dayNumber": 3, "hotelId": None},
            ],
            "tourPackagePricings": [_raw_period("2025-04-01")],
        }
    )

    assert variant.is_persisted
    assert variant.is_default
    assert variant.sort_order == 1
    assert variant.price_modifier == 12.5
    assert variant.hotel_mappings == {"it-1": "h-1", "2": "h-2"}
    assert len(variant.seasonal_pricings) == 1


def test_dates_outside_utc_range_fall_back_instead_of_raising():
    assert parse_datetime("0001-01-01T00:00:00+05:00") is None
    value = to_canonical_date("0001-01-01T00:00:00+05:00")
    assert parse_datetime(value) is not None


def test_early_years_are_zero_padded_and_stable():
    value = to_canonical_date("0999-03-01")
    assert value == "0999-03-01T00:00:00.000000Z"
    assert to_canonical_date(value) == value

    periods = normalize([_raw_period("2025-01-15"), _raw_period("0999-03-01")])
    again = normalize([period.to_dict() for period in periods])
    assert [period.start_date for period in again] == [period.start_date for period in periods]
    assert periods[0].start_date.startswith("0999-03-01")
