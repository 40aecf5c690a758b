"""Async client for the catalog service (hotels, meal plans, vehicles, pricing)."""
from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar, TYPE_CHECKING

import httpx

from package_variants.core.errors import LookupFailure

from .models import Hotel, NamedRecord, RoomPrice

if TYPE_CHECKING:  # pragma: no cover
    from package_variants.config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class CatalogResult(Generic[T]):
    """Lookup outcome; ``warning`` is set when the fetch failed and ``items`` is empty."""

    items: List[T] = field(default_factory=list)
    warning: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.warning is None


def _unwrap(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, dict):
        payload = payload.get("items", payload.get("data", []))
    if not isinstance(payload, list):
        return []
    return [entry for entry in payload if isinstance(entry, dict)]


class CatalogClient(AbstractAsyncContextManager["CatalogClient"]):
    """Thin wrapper around the catalog endpoints used while editing variants."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        default_headers = {
            "Accept": "application/json",
            "User-Agent": "package-variants/0.1.0",
        }
        if headers:
            default_headers.update(headers)
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=default_headers)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "CatalogClient":
        return cls(
            base_url=settings.catalog_base_url,
            timeout=settings.catalog_timeout_s,
            headers=settings.catalog_headers(),
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aexit__(self, exc_type, exc, exc_tb) -> None:
        await self.aclose()

    async def _get_list(self, path: str, resource: str, params: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
        url = f"{self._base_url}/{path.lstrip('/')}"
        logger.debug("Catalog GET %s params=%s", url, params)
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise LookupFailure(resource, str(exc)) from exc
        except ValueError as exc:
            raise LookupFailure(resource, "response was not valid JSON") from exc
        return _unwrap(payload)

    async def hotels(self) -> List[Hotel]:
        return [Hotel.from_payload(entry) for entry in await self._get_list("hotels", "hotels")]

    async def meal_plans(self) -> List[NamedRecord]:
        return [NamedRecord.from_payload(entry) for entry in await self._get_list("meal-plans", "meal plans")]

    async def vehicle_types(self) -> List[NamedRecord]:
        return [NamedRecord.from_payload(entry) for entry in await self._get_list("vehicle-types", "vehicle types")]

    async def pricing_attributes(self) -> List[NamedRecord]:
        entries = await self._get_list("pricing-attributes", "pricing attributes")
        return [NamedRecord.from_payload(entry) for entry in entries]

    async def room_prices(
        self,
        hotel_id: str,
        start_date: date,
        end_date: date,
        meal_plan_id: Optional[str] = None,
    ) -> List[RoomPrice]:
        params = {"startDate": start_date.isoformat(), "endDate": end_date.isoformat()}
        if meal_plan_id:
            params["mealPlanId"] = meal_plan_id
        entries = await self._get_list(f"hotels/{hotel_id}/pricing", f"room pricing for hotel {hotel_id}", params)
        return [RoomPrice.from_payload(entry) for entry in entries]

    @staticmethod
    async def fetch_or_empty(fetch: Callable[..., Awaitable[List[T]]], *args: Any, **kwargs: Any) -> CatalogResult[T]:
        """Run ``fetch`` and degrade a ``LookupFailure`` into an empty result with a warning."""
        try:
            return CatalogResult(items=await fetch(*args, **kwargs))
        except LookupFailure as exc:
            logger.warning("%s; continuing with an empty result", exc)
            return CatalogResult(items=[], warning=str(exc))
