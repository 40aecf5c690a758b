"""Dataclasses for variants, itinerary days and seasonal pricing periods."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional


@dataclass(slots=True)
class ItineraryDay:
    """One day of the shared itinerary skeleton.

    ``key`` is computed once: the stable id when present, else the day number,
    else a synthetic key derived from the day's position in the itinerary.
    """

    day_number: Optional[int]
    id: Optional[str] = None
    title: str = ""
    hotel_id: Optional[str] = None
    position: int = 0
    key: str = field(init=False)

    def __post_init__(self) -> None:
        if self.id:
            self.key = str(self.id)
        elif self.day_number is not None:
            self.key = str(self.day_number)
        else:
            self.key = f"day-{self.position}"

    @property
    def lookup_keys(self) -> tuple[str, ...]:
        """Keys to try when reading a mapping, preferred first."""
        if self.day_number is None or self.key == str(self.day_number):
            return (self.key,)
        return (self.key, str(self.day_number))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], *, position: int = 0) -> "ItineraryDay":
        day_number = raw.get("day_number", raw.get("dayNumber"))
        try:
            day_number = int(day_number) if day_number is not None else None
        except (TypeError, ValueError):
            day_number = None
        title = raw.get("title") or raw.get("itineraryTitle") or ""
        return cls(
            day_number=day_number,
            id=raw.get("id") or None,
            title=str(title),
            hotel_id=raw.get("hotel_id") or raw.get("hotelId") or None,
            position=position,
        )

    @classmethod
    def from_iterable(cls, records: Iterable[Mapping[str, Any]]) -> List["ItineraryDay"]:
        return [cls.from_mapping(record, position=index) for index, record in enumerate(records, start=1)]


@dataclass(slots=True)
class PricingComponent:
    """A single priced line item of a pricing period."""

    attribute_id: str
    price: float
    id: Optional[str] = None
    attribute_name: Optional[str] = None
    purchase_price: Optional[float] = None
    description: Optional[str] = None

    @property
    def name(self) -> str:
        return self.attribute_name or self.attribute_id

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "attribute_id": self.attribute_id,
            "attribute_name": self.attribute_name,
            "price": self.price,
            "purchase_price": self.purchase_price,
            "description": self.description,
        }


@dataclass(slots=True)
class SeasonalPricingPeriod:
    """Date-bounded pricing configuration for a variant.

    Dates are canonical UTC ISO-8601 strings produced by the normalizer.
    """

    start_date: str
    end_date: str
    meal_plan_id: str
    number_of_rooms: int = 1
    pricing_components: List[PricingComponent] = field(default_factory=list)
    id: Optional[str] = None
    variant_id: Optional[str] = None
    vehicle_type_id: Optional[str] = None
    is_group_pricing: bool = False
    description: Optional[str] = None
    location_seasonal_period_id: Optional[str] = None
    total_price: Optional[float] = None
    total_component_price: float = 0.0

    def component(self, name: str) -> Optional[PricingComponent]:
        for component in self.pricing_components:
            if component.name == name:
                return component
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "variant_id": self.variant_id,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "meal_plan_id": self.meal_plan_id,
            "number_of_rooms": self.number_of_rooms,
            "vehicle_type_id": self.vehicle_type_id,
            "is_group_pricing": self.is_group_pricing,
            "description": self.description,
            "location_seasonal_period_id": self.location_seasonal_period_id,
            "total_price": self.total_price,
            "total_component_price": self.total_component_price,
            "pricing_components": [component.to_dict() for component in self.pricing_components],
        }


@dataclass(slots=True)
class Variant:
    """A named alternative configuration of a package."""

    name: str
    id: Optional[str] = None
    description: str = ""
    is_default: bool = False
    sort_order: int = 0
    price_modifier: float = 0.0
    hotel_mappings: Dict[str, str] = field(default_factory=dict)
    seasonal_pricings: List[SeasonalPricingPeriod] = field(default_factory=list)

    @property
    def is_persisted(self) -> bool:
        return bool(self.id)

    def find_period(self, period_id: str) -> Optional[SeasonalPricingPeriod]:
        for period in self.seasonal_pricings:
            if period.id == period_id:
                return period
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_default": self.is_default,
            "sort_order": self.sort_order,
            "price_modifier": self.price_modifier,
            "hotel_mappings": dict(self.hotel_mappings),
            "seasonal_pricings": [period.to_dict() for period in self.seasonal_pricings],
        }

    @classmethod
    def from_iterable(cls, variants: Iterable["Variant"]) -> List[dict[str, object]]:
        return [variant.to_dict() for variant in variants]
