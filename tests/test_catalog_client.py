from __future__ import annotations

import asyncio
from datetime import date

import httpx
import pytest

from package_variants.config.settings import Settings
from package_variants.core.errors import LookupFailure
from package_variants.services import CatalogClient, RoomPriceCache, RoomPriceKey, load_room_prices
from package_variants.services.models import RoomPrice

BASE_URL = "https://catalog.test/api"


def _client(handler) -> CatalogClient:
    return CatalogClient(base_url=BASE_URL, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_hotels_and_lookups_are_parsed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/hotels":
            return httpx.Response(
                200,
                json=[
                    {
                        "id": "h-1",
                        "name": "Sea View",
                        "location": {"label": "Goa"},
                        "images": [{"url": "https://img.test/1.jpg"}],
                    }
                ],
            )
        if request.url.path == "/api/meal-plans":
            return httpx.Response(200, json={"items": [{"id": "MAP", "name": "Modified American Plan"}]})
        return httpx.Response(404)

    async with _client(handler) as client:
        hotels = await client.hotels()
        meal_plans = await client.meal_plans()

    assert hotels[0].name == "Sea View"
    assert hotels[0].location_label == "Goa"
    assert hotels[0].image_url == "https://img.test/1.jpg"
    assert meal_plans[0].name == "Modified American Plan"


@pytest.mark.asyncio
async def test_http_errors_raise_lookup_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    async with _client(handler) as client:
        with pytest.raises(LookupFailure) as excinfo:
            await client.vehicle_types()

    assert excinfo.value.resource == "vehicle types"


@pytest.mark.asyncio
async def test_fetch_or_empty_degrades_to_warning() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    async with _client(handler) as client:
        result = await client.fetch_or_empty(client.pricing_attributes)

    assert result.items == []
    assert not result.ok
    assert "pricing attributes" in result.warning


@pytest.mark.asyncio
async def test_room_prices_send_period_query() -> None:
    seen: list[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(
            200,
            json=[
                {
                    "roomType": {"name": "Deluxe"},
                    "occupancyType": {"name": "Double"},
                    "mealPlan": {"name": "MAP"},
                    "price": "4500",
                },
                {"roomType": "Suite", "price": -10},
            ],
        )

    async with _client(handler) as client:
        prices = await client.room_prices("h-1", date(2025, 4, 1), date(2025, 6, 30), "MAP")

    assert seen[0].path == "/api/hotels/h-1/pricing"
    assert seen[0].params["startDate"] == "2025-04-01"
    assert seen[0].params["mealPlanId"] == "MAP"
    assert prices[0] == RoomPrice(room_type="Deluxe", occupancy_type="Double", meal_plan="MAP", price=4500.0)
    assert prices[1].occupancy_type == ""
    assert prices[1].price == 0.0


def test_client_from_settings_uses_token() -> None:
    settings = Settings(catalog_base_url="https://catalog.test/api/", catalog_api_token="secret")
    client = CatalogClient.from_settings(settings)
    try:
        assert client._base_url == "https://catalog.test/api"
        assert client._client.headers["Authorization"] == "Bearer secret"
    finally:
        asyncio.run(client.aclose())


class _SlowThenFastSource:
    """Answers the first request last to mimic out-of-order responses."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def room_prices(self, hotel_id, start_date, end_date, meal_plan_id=None):
        self.calls.append(hotel_id)
        if hotel_id == "h-old":
            await asyncio.sleep(0.05)
        return [RoomPrice(room_type=hotel_id, occupancy_type="Double", meal_plan=meal_plan_id or "", price=100.0)]


@pytest.mark.asyncio
async def test_out_of_order_responses_land_under_their_own_key() -> None:
    source = _SlowThenFastSource()
    cache = RoomPriceCache()
    stale = RoomPriceKey(0, 0, "h-old", date(2025, 4, 1), date(2025, 6, 30), "MAP")
    fresh = RoomPriceKey(0, 0, "h-new", date(2025, 4, 1), date(2025, 6, 30), "MAP")

    warnings = await load_room_prices(source, cache, [stale, fresh])

    assert warnings == {}
    assert cache.get(fresh)[0].room_type == "h-new"
    assert cache.get(stale)[0].room_type == "h-old"
    assert len(cache.for_period(0, 0)) == 2


@pytest.mark.asyncio
async def test_cached_keys_are_not_refetched() -> None:
    source = _SlowThenFastSource()
    cache = RoomPriceCache()
    key = RoomPriceKey(1, 0, "h-1", date(2025, 4, 1), date(2025, 6, 30))

    await load_room_prices(source, cache, [key, key])
    await load_room_prices(source, cache, [key])
    assert source.calls == ["h-1"]

    await load_room_prices(source, cache, [key], refresh=True)
    assert source.calls == ["h-1", "h-1"]
    assert cache.discard_variant(1) == 1
    assert key not in cache


@pytest.mark.asyncio
async def test_failed_room_price_lookup_reports_warning() -> None:
    class _FailingSource:
        async def room_prices(self, hotel_id, start_date, end_date, meal_plan_id=None):
            raise LookupFailure(f"room pricing for hotel {hotel_id}", "timeout")

    cache = RoomPriceCache()
    key = RoomPriceKey(0, 1, "h-1", date(2025, 4, 1), date(2025, 6, 30))

    warnings = await load_room_prices(_FailingSource(), cache, [key])

    assert "timeout" in warnings[key]
    assert cache.get(key) is None
    assert key not in cache


@pytest.mark.asyncio
async def test_failed_room_price_lookup_is_retried() -> None:
    class _FlakySource:
        def __init__(self) -> None:
            self.calls: list[str] = []

        async def room_prices(self, hotel_id, start_date, end_date, meal_plan_id=None):
            self.calls.append(hotel_id)
            if len(self.calls) == 1:
                raise LookupFailure(f"room pricing for hotel {hotel_id}", "timeout")
            return [RoomPrice(room_type="Deluxe", occupancy_type="Double", meal_plan="MAP", price=4500.0)]

    source = _FlakySource()
    cache = RoomPriceCache()
    key = RoomPriceKey(0, 0, "h-1", date(2025, 4, 1), date(2025, 6, 30), "MAP")

    first = await load_room_prices(source, cache, [key])
    second = await load_room_prices(source, cache, [key])

    assert key in first
    assert second == {}
    assert source.calls == ["h-1", "h-1"]
    assert cache.get(key)[0].price == 4500.0
