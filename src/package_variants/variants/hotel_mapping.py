"""Per-variant day → hotel assignments."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from package_variants.core.errors import DayCountMismatch

from .models import ItineraryDay, Variant

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApplyResult:
    """Outcome of copying hotels from another itinerary onto a variant."""

    applied: int = 0
    unmapped_day_numbers: List[Optional[int]] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.unmapped_day_numbers)


def set_mapping(variant: Variant, day_key: str, hotel_id: str) -> None:
    """Assign ``hotel_id`` to ``day_key``. Hotel existence is not checked here."""
    variant.hotel_mappings[str(day_key)] = hotel_id


def clear_mapping(variant: Variant, day_key: str) -> Optional[str]:
    return variant.hotel_mappings.pop(str(day_key), None)


def get_mapping(variant: Variant, day: ItineraryDay) -> Optional[str]:
    for key in day.lookup_keys:
        hotel_id = variant.hotel_mappings.get(key)
        if hotel_id:
            return hotel_id
    return None


def copy_mappings(source: Variant, target: Variant) -> None:
    target.hotel_mappings = dict(source.hotel_mappings)


def apply_from_external_day_set(
    variant: Variant,
    current_days: Sequence[ItineraryDay],
    external_days: Sequence[ItineraryDay],
) -> ApplyResult:
    """Copy hotels from ``external_days`` onto ``variant`` day by day.

    Days are paired by position, not by day number. Raises ``DayCountMismatch``
    before touching the variant when the two itineraries differ in length.
    """
    if len(current_days) != len(external_days):
        raise DayCountMismatch(len(current_days), len(external_days))

    mappings = dict(variant.hotel_mappings)
    result = ApplyResult()
    for current, external in zip(current_days, external_days):
        for key in current.lookup_keys:
            mappings.pop(key, None)
        if external.hotel_id:
            mappings[current.key] = external.hotel_id
            result.applied += 1
        else:
            result.unmapped_day_numbers.append(current.day_number)

    variant.hotel_mappings = mappings
    if result.unmapped_day_numbers:
        logger.warning(
            "Variant '%s': no hotel in source for day(s) %s; left unassigned",
            variant.name,
            ", ".join(str(day) for day in result.unmapped_day_numbers),
        )
    logger.info("Variant '%s': applied %d hotel(s) from external itinerary", variant.name, result.applied)
    return result
