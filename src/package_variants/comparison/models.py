"""Dataclasses for variant snapshots and the side-by-side comparison result."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Union

from package_variants.variants.normalizer import parse_number, to_canonical_number

NOT_SPECIFIED = "not specified"
ABSENT = "—"
UNKNOWN = "unknown"


@dataclass(slots=True)
class HotelSnapshot:
    """The hotel a variant uses on one itinerary day."""

    day_number: int
    hotel_id: str
    hotel_name: str
    location_label: str = ""
    image_url: Optional[str] = None
    room_category: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        return {
            "day_number": self.day_number,
            "hotel_id": self.hotel_id,
            "hotel_name": self.hotel_name,
            "location_label": self.location_label,
            "image_url": self.image_url,
            "room_category": self.room_category,
        }


@dataclass(slots=True)
class PricingComponentSnapshot:
    attribute_name: str
    price: float
    purchase_price: Optional[float] = None
    description: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        return {
            "attribute_name": self.attribute_name,
            "price": self.price,
            "purchase_price": self.purchase_price,
            "description": self.description,
        }


@dataclass(slots=True)
class PricingSnapshot:
    """A pricing period frozen with resolved names and its stored total."""

    start_date: str
    end_date: str
    meal_plan_name: str
    number_of_rooms: int = 1
    vehicle_type_name: Optional[str] = None
    is_group_pricing: bool = False
    total_price: Optional[float] = None
    description: Optional[str] = None
    components: List[PricingComponentSnapshot] = field(default_factory=list)

    def component(self, name: str) -> Optional[PricingComponentSnapshot]:
        for component in self.components:
            if component.attribute_name == name:
                return component
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "start_date": self.start_date,
            "end_date": self.end_date,
            "meal_plan_name": self.meal_plan_name,
            "number_of_rooms": self.number_of_rooms,
            "vehicle_type_name": self.vehicle_type_name,
            "is_group_pricing": self.is_group_pricing,
            "total_price": self.total_price,
            "description": self.description,
            "components": [component.to_dict() for component in self.components],
        }


@dataclass(slots=True)
class VariantSnapshot:
    """Variant state preserved independently of later edits to its source."""

    name: str
    source_variant_id: Optional[str] = None
    id: Optional[str] = None
    description: Optional[str] = None
    is_default: bool = False
    sort_order: int = 0
    price_modifier: float = 0.0
    hotel_snapshots: List[HotelSnapshot] = field(default_factory=list)
    pricing_snapshots: List[PricingSnapshot] = field(default_factory=list)

    @property
    def key(self) -> str:
        """Identity used for matrix columns and the best-value set."""
        return self.id or self.source_variant_id or self.name

    @property
    def primary_pricing(self) -> Optional[PricingSnapshot]:
        return self.pricing_snapshots[0] if self.pricing_snapshots else None

    def hotel_for_day(self, day_number: int) -> Optional[HotelSnapshot]:
        for snapshot in self.hotel_snapshots:
            if snapshot.day_number == day_number:
                return snapshot
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "source_variant_id": self.source_variant_id,
            "name": self.name,
            "description": self.description,
            "is_default": self.is_default,
            "sort_order": self.sort_order,
            "price_modifier": self.price_modifier,
            "hotel_snapshots": [snapshot.to_dict() for snapshot in self.hotel_snapshots],
            "pricing_snapshots": [snapshot.to_dict() for snapshot in self.pricing_snapshots],
        }


@dataclass(frozen=True, slots=True)
class OverrideComponent:
    name: str
    price: float
    description: Optional[str] = None


@dataclass(slots=True)
class FallbackOverride:
    """Coarse pricing entered for a variant outside its structured pricing periods."""

    components: List[OverrideComponent] = field(default_factory=list)
    total_cost: Optional[float] = None
    remarks: Optional[str] = None

    def price_for(self, name: str) -> Optional[float]:
        for component in self.components:
            if component.name == name:
                return component.price
        return None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "FallbackOverride":
        components: List[OverrideComponent] = []
        for entry in raw.get("components") or []:
            if not isinstance(entry, Mapping):
                continue
            name = str(entry.get("name") or entry.get("component_name") or "").strip()
            if not name:
                continue
            components.append(
                OverrideComponent(
                    name=name,
                    price=to_canonical_number(entry.get("price")),
                    description=entry.get("description") or None,
                )
            )
        total = raw.get("total_cost", raw.get("totalCost"))
        return cls(components=components, total_cost=parse_number(total), remarks=raw.get("remarks") or None)


@dataclass(frozen=True, slots=True)
class HotelCell:
    hotel_id: str
    hotel_name: str
    location_label: str
    room_category: Optional[str] = None
    image_url: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        return {
            "hotel_id": self.hotel_id,
            "hotel_name": self.hotel_name,
            "location_label": self.location_label,
            "room_category": self.room_category,
            "image_url": self.image_url,
        }


@dataclass(frozen=True, slots=True)
class VariantColumn:
    key: str
    name: str
    price_modifier: float = 0.0
    is_default: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "key": self.key,
            "name": self.name,
            "price_modifier": self.price_modifier,
            "is_default": self.is_default,
        }


HotelEntry = Union[HotelCell, str]
PriceEntry = Union[float, str]
Total = Union[float, str]


@dataclass(slots=True)
class ComparisonResult:
    """Render-ready comparison of two or more variants.

    Every matrix row is aligned with ``variants``. Gaps hold the explicit
    sentinels ``NOT_SPECIFIED``, ``ABSENT`` and ``UNKNOWN``; renderers must not
    recompute totals or best value.
    """

    variants: List[VariantColumn]
    day_axis: List[int]
    hotel_matrix: List[List[HotelEntry]]
    component_axis: List[str]
    price_matrix: List[List[PriceEntry]]
    variant_totals: List[Total]
    best_value: FrozenSet[str]
    meal_plans: List[str] = field(default_factory=list)
    room_counts: List[Union[int, str]] = field(default_factory=list)
    vehicle_types: List[str] = field(default_factory=list)

    @property
    def variant_keys(self) -> List[str]:
        return [column.key for column in self.variants]

    def _column(self, variant_key: str) -> int:
        try:
            return self.variant_keys.index(variant_key)
        except ValueError as exc:
            raise KeyError(f"Variant '{variant_key}' is not part of this comparison") from exc

    def hotel(self, day_number: int, variant_key: str) -> HotelEntry:
        return self.hotel_matrix[self.day_axis.index(day_number)][self._column(variant_key)]

    def price(self, component_name: str, variant_key: str) -> PriceEntry:
        return self.price_matrix[self.component_axis.index(component_name)][self._column(variant_key)]

    def total(self, variant_key: str) -> Total:
        return self.variant_totals[self._column(variant_key)]

    def is_best_value(self, variant_key: str) -> bool:
        return variant_key in self.best_value

    @property
    def has_pricing(self) -> bool:
        return bool(self.component_axis) or any(total != UNKNOWN for total in self.variant_totals)

    def to_dict(self) -> dict[str, object]:
        hotel_rows: List[Dict[str, object]] = []
        for day, row in zip(self.day_axis, self.hotel_matrix):
            hotel_rows.append(
                {
                    "day_number": day,
                    "cells": [cell.to_dict() if isinstance(cell, HotelCell) else cell for cell in row],
                }
            )
        return {
            "variants": [column.to_dict() for column in self.variants],
            "day_axis": list(self.day_axis),
            "hotel_matrix": hotel_rows,
            "component_axis": list(self.component_axis),
            "price_matrix": [
                {"component": name, "cells": list(row)}
                for name, row in zip(self.component_axis, self.price_matrix)
            ],
            "variant_totals": list(self.variant_totals),
            "best_value": [key for key in self.variant_keys if key in self.best_value],
            "meal_plans": list(self.meal_plans),
            "room_counts": list(self.room_counts),
            "vehicle_types": list(self.vehicle_types),
        }
