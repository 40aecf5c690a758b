"""Read-only catalog records supplied by the catalog service."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from package_variants.variants.normalizer import pick, to_canonical_number


def _first_image(raw: Mapping[str, Any]) -> Optional[str]:
    images = raw.get("images") or []
    for image in images:
        if isinstance(image, Mapping) and image.get("url"):
            return str(image["url"])
        if isinstance(image, str) and image:
            return image
    return None


def _name_of(value: Any) -> str:
    if isinstance(value, Mapping):
        value = value.get("name")
    return str(value or "")


@dataclass(frozen=True, slots=True)
class Hotel:
    id: str
    name: str
    location_label: str = ""
    image_url: Optional[str] = None

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any]) -> "Hotel":
        location = raw.get("location") or {}
        label = pick(raw, "location_label", "locationLabel")
        if label is None and isinstance(location, Mapping):
            label = location.get("label")
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            location_label=str(label or ""),
            image_url=pick(raw, "image_url", "imageUrl") or _first_image(raw),
        )


@dataclass(frozen=True, slots=True)
class NamedRecord:
    """Meal plans, vehicle types and pricing attributes share this shape."""

    id: str
    name: str

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any]) -> "NamedRecord":
        return cls(id=str(raw.get("id") or ""), name=str(raw.get("name") or ""))


@dataclass(frozen=True, slots=True)
class RoomPrice:
    """One room-level price entry for a hotel, date range and meal plan."""

    room_type: str
    occupancy_type: str
    meal_plan: str
    price: float

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any]) -> "RoomPrice":
        room_type = raw.get("roomType") or raw.get("room_type") or {}
        occupancy = raw.get("occupancyType") or raw.get("occupancy_type") or {}
        meal_plan = raw.get("mealPlan") or raw.get("meal_plan") or {}
        price = to_canonical_number(raw.get("price"))
        return cls(
            room_type=_name_of(room_type),
            occupancy_type=_name_of(occupancy),
            meal_plan=_name_of(meal_plan),
            price=max(price, 0.0),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "room_type": self.room_type,
            "occupancy_type": self.occupancy_type,
            "meal_plan": self.meal_plan,
            "price": self.price,
        }
