"""Shared error types and logging helpers."""

from .errors import (
    DayCountMismatch,
    LastVariantRemoval,
    LookupFailure,
    ValidationError,
    VariantNotPersisted,
    VariantsError,
)

__all__ = [
    "DayCountMismatch",
    "LastVariantRemoval",
    "LookupFailure",
    "ValidationError",
    "VariantNotPersisted",
    "VariantsError",
]
