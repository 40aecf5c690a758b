"""In-memory list of variants being edited for one package."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, List, Optional, TYPE_CHECKING

from package_variants.core.errors import LastVariantRemoval

from .hotel_mapping import copy_mappings
from .models import Variant
from .normalizer import normalize_variant

if TYPE_CHECKING:  # pragma: no cover
    from package_variants.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Standard"
DEFAULT_DESCRIPTION = "Standard package with good quality hotels"
NEW_VARIANT_PREFIX = "Variant"

_EDITABLE_FIELDS = frozenset({"name", "description", "price_modifier", "sort_order"})


class VariantList:
    """Owns the variants of a package while it is being edited.

    Always holds at least one variant. Assumes a single active editor.
    """

    def __init__(self, variants: Iterable[Variant], *, new_variant_prefix: str = NEW_VARIANT_PREFIX) -> None:
        self._variants: List[Variant] = list(variants)
        self._prefix = new_variant_prefix
        if not self._variants:
            raise ValueError("VariantList requires at least one variant")

    def __len__(self) -> int:
        return len(self._variants)

    def __iter__(self) -> Iterator[Variant]:
        return iter(self._variants)

    def __getitem__(self, index: int) -> Variant:
        return self._variants[index]

    @property
    def default(self) -> Optional[Variant]:
        return next((variant for variant in self._variants if variant.is_default), None)

    @classmethod
    def with_default(cls, settings: Optional["Settings"] = None) -> "VariantList":
        name = settings.default_variant_name if settings else DEFAULT_NAME
        description = settings.default_variant_description if settings else DEFAULT_DESCRIPTION
        prefix = settings.new_variant_prefix if settings else NEW_VARIANT_PREFIX
        variant = Variant(name=name, description=description, is_default=True, sort_order=0)
        return cls([variant], new_variant_prefix=prefix)

    @classmethod
    def from_records(cls, records: Iterable[Any], settings: Optional["Settings"] = None) -> "VariantList":
        """Load variants from persisted records or a template; empty input yields the default."""
        variants = [normalize_variant(record) for record in records or []]
        if not variants:
            logger.info("No stored variants; starting from the default variant")
            return cls.with_default(settings)
        variants.sort(key=lambda variant: variant.sort_order)
        prefix = settings.new_variant_prefix if settings else NEW_VARIANT_PREFIX
        return cls(variants, new_variant_prefix=prefix)

    def add(self, name: Optional[str] = None) -> Variant:
        variant = Variant(
            name=name or f"{self._prefix} {len(self._variants) + 1}",
            sort_order=len(self._variants),
        )
        self._variants.append(variant)
        logger.debug("Added variant '%s' at position %d", variant.name, len(self._variants) - 1)
        return variant

    def update(self, index: int, **changes: Any) -> Variant:
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise TypeError(f"Unsupported variant fields: {', '.join(sorted(unknown))}")
        variant = self._variants[index]
        for name, value in changes.items():
            setattr(variant, name, value)
        return variant

    def set_default(self, index: int, flag: bool = True) -> None:
        """Mark ``index`` as the default; every other variant is cleared."""
        target = self._variants[index]
        for variant in self._variants:
            variant.is_default = variant is target and flag

    def delete(self, index: int) -> Variant:
        if len(self._variants) <= 1:
            raise LastVariantRemoval()
        removed = self._variants.pop(index)
        logger.info("Deleted variant '%s'", removed.name)
        return removed

    def copy_first_variant_hotels(self) -> int:
        """Copy the first variant's hotels onto every other variant."""
        if len(self._variants) <= 1:
            return 0
        source = self._variants[0]
        for variant in self._variants[1:]:
            copy_mappings(source, variant)
        return len(self._variants) - 1

    def find(self, variant_id: str) -> Optional[Variant]:
        for variant in self._variants:
            if variant.id == variant_id:
                return variant
        return None

    def to_list(self) -> List[Variant]:
        return list(self._variants)
