"""Validated create/update/delete of a variant's seasonal pricing periods."""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Tuple

from package_variants.core.errors import ValidationError, VariantNotPersisted

from .models import SeasonalPricingPeriod, Variant
from .normalizer import canonical_day, normalize_period, parse_datetime, parse_number, pick, sort_periods

logger = logging.getLogger(__name__)


class PricingRepository(Protocol):
    """Persistence collaborator for pricing periods, keyed by ``(package_id, period_id)``."""

    def create_pricing_period(
        self, package_id: Optional[str], package_variant_id: str, record: dict[str, object]
    ) -> str:
        ...

    def update_pricing_period(self, package_id: Optional[str], period_id: str, record: dict[str, object]) -> None:
        ...

    def delete_pricing_period(self, package_id: Optional[str], period_id: str) -> None:
        ...


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _validate_component(index: int, component: Any) -> None:
    prefix = f"pricing_components[{index}]"
    if not isinstance(component, Mapping):
        raise ValidationError(prefix, "must be a mapping")
    if _missing(pick(component, "attribute_id", "attributeId", "pricingAttributeId")):
        raise ValidationError(f"{prefix}.attribute_id", "Pricing attribute is required")
    price = parse_number(component.get("price"))
    if price is None:
        raise ValidationError(f"{prefix}.price", "Sales price must be a number")
    if price < 0:
        raise ValidationError(f"{prefix}.price", "Sales price must be at least 0")
    purchase_raw = pick(component, "purchase_price", "purchasePrice")
    if not _missing(purchase_raw):
        purchase = parse_number(purchase_raw)
        if purchase is None:
            raise ValidationError(f"{prefix}.purchase_price", "Purchase price must be a number")
        if purchase < 0:
            raise ValidationError(f"{prefix}.purchase_price", "Purchase price must be at least 0")


def validate_draft(draft: Mapping[str, Any]) -> None:
    """Raise ``ValidationError`` for the first field of ``draft`` that is invalid."""
    start = parse_datetime(pick(draft, "start_date", "startDate"))
    if start is None:
        raise ValidationError("start_date", "Start date is required")
    end = parse_datetime(pick(draft, "end_date", "endDate"))
    if end is None:
        raise ValidationError("end_date", "End date is required")
    if end < start:
        raise ValidationError("end_date", "End date must be after start date")

    if _missing(pick(draft, "meal_plan_id", "mealPlanId")):
        raise ValidationError("meal_plan_id", "Meal plan is required")

    rooms_raw = pick(draft, "number_of_rooms", "numberOfRooms")
    rooms = parse_number(rooms_raw)
    if rooms is None or not rooms.is_integer():
        raise ValidationError("number_of_rooms", "Number of rooms must be a whole number")
    if rooms < 1:
        raise ValidationError("number_of_rooms", "Number of rooms must be at least 1")

    components = pick(draft, "pricing_components", "pricingComponents")
    if not components:
        raise ValidationError("pricing_components", "At least one pricing component is required")
    for index, component in enumerate(components):
        _validate_component(index, component)


def _day_range(period: SeasonalPricingPeriod) -> Tuple[date, date]:
    return canonical_day(period.start_date), canonical_day(period.end_date)


def find_overlaps(
    periods: Sequence[SeasonalPricingPeriod],
) -> List[Tuple[SeasonalPricingPeriod, SeasonalPricingPeriod]]:
    """Pairs of periods whose inclusive date ranges intersect."""
    overlaps: List[Tuple[SeasonalPricingPeriod, SeasonalPricingPeriod]] = []
    ordered = sort_periods(periods)
    for i, first in enumerate(ordered):
        first_start, first_end = _day_range(first)
        for second in ordered[i + 1:]:
            second_start, second_end = _day_range(second)
            if second_start > first_end:
                break
            if first_start <= second_end:
                overlaps.append((first, second))
    return overlaps


def period_for_date(periods: Sequence[SeasonalPricingPeriod], day: date) -> Optional[SeasonalPricingPeriod]:
    """Pricing period covering ``day``; the earliest-starting period wins on overlap."""
    for period in sort_periods(periods):
        start, end = _day_range(period)
        if start <= day <= end:
            return period
    return None


class SeasonalPricingStore:
    """Validated CRUD over ``Variant.seasonal_pricings``.

    When a repository is supplied every write goes through it before the
    in-memory variant is touched, so a failed write leaves the variant as-is.
    """

    def __init__(self, repository: Optional[PricingRepository] = None, *, package_id: Optional[str] = None) -> None:
        self._repository = repository
        self._package_id = package_id

    @staticmethod
    def _require_persisted(variant: Variant) -> str:
        if not variant.is_persisted:
            raise VariantNotPersisted(variant.name)
        return str(variant.id)

    def _warn_overlaps(self, variant: Variant, period: SeasonalPricingPeriod) -> None:
        for first, second in find_overlaps(variant.seasonal_pricings):
            if period in (first, second):
                other = second if first is period else first
                logger.warning(
                    "Variant '%s': pricing period %s overlaps period %s (%s - %s)",
                    variant.name,
                    period.id,
                    other.id,
                    other.start_date,
                    other.end_date,
                )

    def create(self, variant: Variant, draft: Mapping[str, Any]) -> SeasonalPricingPeriod:
        variant_id = self._require_persisted(variant)
        validate_draft(draft)
        period = normalize_period(draft)
        period.variant_id = variant_id
        if self._repository is not None:
            period.id = self._repository.create_pricing_period(self._package_id, variant_id, period.to_dict())
        else:
            period.id = period.id or uuid.uuid4().hex
        variant.seasonal_pricings = sort_periods([*variant.seasonal_pricings, period])
        logger.info("Variant '%s': created pricing period %s", variant.name, period.id)
        self._warn_overlaps(variant, period)
        return period

    def update(self, variant: Variant, period_id: str, draft: Mapping[str, Any]) -> SeasonalPricingPeriod:
        variant_id = self._require_persisted(variant)
        existing = variant.find_period(period_id)
        if existing is None:
            raise KeyError(f"Pricing period '{period_id}' not found on variant '{variant.name}'")
        validate_draft(draft)
        period = normalize_period(draft)
        period.id = period_id
        period.variant_id = variant_id
        if self._repository is not None:
            self._repository.update_pricing_period(self._package_id, period_id, period.to_dict())
        remaining = [item for item in variant.seasonal_pricings if item.id != period_id]
        variant.seasonal_pricings = sort_periods([*remaining, period])
        logger.info("Variant '%s': updated pricing period %s", variant.name, period_id)
        self._warn_overlaps(variant, period)
        return period

    def delete(self, variant: Variant, period_id: str) -> None:
        self._require_persisted(variant)
        if variant.find_period(period_id) is None:
            raise KeyError(f"Pricing period '{period_id}' not found on variant '{variant.name}'")
        if self._repository is not None:
            self._repository.delete_pricing_period(self._package_id, period_id)
        variant.seasonal_pricings = [item for item in variant.seasonal_pricings if item.id != period_id]
        logger.info("Variant '%s': deleted pricing period %s", variant.name, period_id)

    def list(self, variant: Variant) -> List[SeasonalPricingPeriod]:
        return sort_periods(variant.seasonal_pricings)
