"""Room-level price lookups cached per pricing period.

Responses are stored under the exact input that requested them, so a slow
response for a stale selection can never overwrite the entry for a newer one.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Dict, Iterable, List, NamedTuple, Optional, Protocol

from package_variants.core.errors import LookupFailure

from .models import RoomPrice

logger = logging.getLogger(__name__)


class RoomPriceKey(NamedTuple):
    variant_index: int
    period_index: int
    hotel_id: str
    start_date: date
    end_date: date
    meal_plan_id: Optional[str] = None


class RoomPriceSource(Protocol):
    async def room_prices(
        self,
        hotel_id: str,
        start_date: date,
        end_date: date,
        meal_plan_id: Optional[str] = None,
    ) -> List[RoomPrice]:
        ...


class RoomPriceCache:
    def __init__(self) -> None:
        self._entries: Dict[RoomPriceKey, List[RoomPrice]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def put(self, key: RoomPriceKey, prices: Iterable[RoomPrice]) -> None:
        self._entries[key] = list(prices)

    def get(self, key: RoomPriceKey) -> Optional[List[RoomPrice]]:
        return self._entries.get(key)

    def for_period(self, variant_index: int, period_index: int) -> Dict[RoomPriceKey, List[RoomPrice]]:
        return {
            key: prices
            for key, prices in self._entries.items()
            if key.variant_index == variant_index and key.period_index == period_index
        }

    def discard_variant(self, variant_index: int) -> int:
        stale = [key for key in self._entries if key.variant_index == variant_index]
        for key in stale:
            del self._entries[key]
        return len(stale)


async def _load_one(source: RoomPriceSource, cache: RoomPriceCache, key: RoomPriceKey) -> Optional[str]:
    try:
        prices = await source.room_prices(key.hotel_id, key.start_date, key.end_date, key.meal_plan_id)
    except LookupFailure as exc:
        # Not cached: the next load retries the key.
        logger.warning("Room prices unavailable for hotel %s: %s", key.hotel_id, exc.detail or exc)
        return str(exc)
    cache.put(key, prices)
    return None


async def load_room_prices(
    source: RoomPriceSource,
    cache: RoomPriceCache,
    keys: Iterable[RoomPriceKey],
    *,
    refresh: bool = False,
) -> Dict[RoomPriceKey, str]:
    """Fetch every missing key concurrently; returns warnings for failed lookups."""
    pending = list(dict.fromkeys(key for key in keys if refresh or key not in cache))
    if not pending:
        return {}
    logger.debug("Loading room prices for %d key(s)", len(pending))
    results = await asyncio.gather(*(_load_one(source, cache, key) for key in pending))
    return {key: warning for key, warning in zip(pending, results) if warning is not None}
