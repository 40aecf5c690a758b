"""Catalog lookups and room-level price caching."""

from .catalog_client import CatalogClient, CatalogResult
from .models import Hotel, NamedRecord, RoomPrice
from .room_prices import RoomPriceCache, RoomPriceKey, load_room_prices

__all__ = [
    "CatalogClient",
    "CatalogResult",
    "Hotel",
    "NamedRecord",
    "RoomPrice",
    "RoomPriceCache",
    "RoomPriceKey",
    "load_room_prices",
]
