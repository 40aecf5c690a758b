"""Exception taxonomy for variant editing, pricing and catalog lookups."""
from __future__ import annotations

from typing import Optional


class VariantsError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(VariantsError):
    """A pricing period draft violates a field constraint."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class DayCountMismatch(VariantsError):
    """Bulk hotel apply attempted between itineraries of different lengths."""

    def __init__(self, current_count: int, external_count: int) -> None:
        super().__init__(
            f"Cannot apply hotels: itinerary has {current_count} day(s) "
            f"but the source has {external_count}"
        )
        self.current_count = current_count
        self.external_count = external_count


class VariantNotPersisted(VariantsError):
    """Pricing mutation attempted against a variant without a stable id."""

    def __init__(self, variant_name: Optional[str] = None) -> None:
        label = f"'{variant_name}'" if variant_name else "variant"
        super().__init__(f"Save {label} before managing its seasonal pricing")
        self.variant_name = variant_name


class LastVariantRemoval(VariantsError):
    """At least one variant must always remain."""

    def __init__(self) -> None:
        super().__init__("Cannot delete the last variant")


class LookupFailure(VariantsError):
    """An external catalog or pricing fetch failed. Safe to retry."""

    def __init__(self, resource: str, detail: str = "") -> None:
        message = f"Failed to fetch {resource}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.resource = resource
        self.detail = detail
