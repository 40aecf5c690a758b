"""Compare package variants side by side from a JSON export or the SQLite store."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

from package_variants.comparison import (
    ComparisonResult,
    HotelCell,
    VariantSnapshot,
    build_comparison,
    build_variant_snapshots,
    snapshot_from_record,
)
from package_variants.config.settings import Settings
from package_variants.core.logging import configure_logging
from package_variants.services import CatalogClient, Hotel, NamedRecord
from package_variants.storage import JsonWriter, SqliteStore
from package_variants.variants import ItineraryDay, VariantList

logger = logging.getLogger("compare_variants")


def _load_input(path: Path) -> dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise SystemExit(f"{path} must contain a JSON object")
    return data


async def _fetch_lookups(settings: Settings) -> dict[str, list[Any]]:
    async with CatalogClient.from_settings(settings) as client:
        hotels, meal_plans, vehicles, attributes = await asyncio.gather(
            client.fetch_or_empty(client.hotels),
            client.fetch_or_empty(client.meal_plans),
            client.fetch_or_empty(client.vehicle_types),
            client.fetch_or_empty(client.pricing_attributes),
        )
    for result in (hotels, meal_plans, vehicles, attributes):
        if result.warning:
            print(f"warning: {result.warning}")
    return {
        "hotels": hotels.items,
        "meal_plans": meal_plans.items,
        "vehicle_types": vehicles.items,
        "attributes": attributes.items,
    }


def _lookups_from_input(data: dict[str, Any]) -> dict[str, list[Any]]:
    return {
        "hotels": [Hotel.from_payload(entry) for entry in data.get("hotels") or []],
        "meal_plans": [NamedRecord.from_payload(entry) for entry in data.get("meal_plans") or []],
        "vehicle_types": [NamedRecord.from_payload(entry) for entry in data.get("vehicle_types") or []],
        "attributes": [NamedRecord.from_payload(entry) for entry in data.get("pricing_attributes") or []],
    }


def _load_variant_records(settings: Settings, data: dict[str, Any], package_id: Optional[str]) -> list[Any]:
    if package_id is None:
        return list(data.get("variants") or [])
    if not settings.sqlite_storage_enabled:
        raise SystemExit("--package-id requires VARIANTS_SQLITE_STORAGE_ENABLED=true")
    with SqliteStore(settings.sqlite_storage_path, busy_timeout_ms=settings.sqlite_busy_timeout_ms) as store:
        return store.list_variants(package_id)


def build_snapshots(
    settings: Settings,
    data: dict[str, Any],
    *,
    package_id: Optional[str] = None,
    use_catalog: bool = False,
) -> list[VariantSnapshot]:
    stored = data.get("snapshots")
    if stored:
        return [snapshot_from_record(record) for record in stored]
    lookups = asyncio.run(_fetch_lookups(settings)) if use_catalog else _lookups_from_input(data)
    variants = VariantList.from_records(_load_variant_records(settings, data, package_id), settings)
    days = ItineraryDay.from_iterable(data.get("itinerary") or [])
    return build_variant_snapshots(
        variants,
        days,
        lookups["hotels"],
        meal_plans=lookups["meal_plans"],
        vehicle_types=lookups["vehicle_types"],
        attributes=lookups["attributes"],
    )


def _format_price(value: Any) -> str:
    if isinstance(value, (int, float)):
        return f"{value:,.2f}"
    return str(value)


def render(result: ComparisonResult) -> list[str]:
    header = ["", *(f"{column.name}{' *' if column.is_default else ''}" for column in result.variants)]
    lines = [" | ".join(header)]
    for day, row in zip(result.day_axis, result.hotel_matrix):
        cells = [cell.hotel_name if isinstance(cell, HotelCell) else cell for cell in row]
        lines.append(" | ".join([f"Day {day}", *cells]))
    if result.has_pricing:
        lines.append(" | ".join(["Meal plan", *result.meal_plans]))
        lines.append(" | ".join(["Rooms", *(str(count) for count in result.room_counts)]))
        lines.append(" | ".join(["Vehicle", *result.vehicle_types]))
        for name, row in zip(result.component_axis, result.price_matrix):
            lines.append(" | ".join([name, *(_format_price(value) for value in row)]))
        totals = []
        for column, total in zip(result.variants, result.variant_totals):
            badge = " (best value)" if result.is_best_value(column.key) else ""
            totals.append(f"{_format_price(total)}{badge}")
        lines.append(" | ".join(["Total", *totals]))
    else:
        lines.append("No pricing configured for these variants")
    return lines


def main(
    input_path: Path,
    *,
    export: Optional[str] = None,
    package_id: Optional[str] = None,
    use_catalog: bool = False,
) -> ComparisonResult:
    settings = Settings()
    settings.ensure_directories()
    configure_logging(settings.log_level, settings.log_dir, filename="compare_variants.log")
    data = _load_input(input_path)
    snapshots = build_snapshots(settings, data, package_id=package_id, use_catalog=use_catalog)
    result = build_comparison(snapshots, data.get("overrides") or {})
    for line in render(result):
        print(line)
    if export:
        path = JsonWriter(settings.output_dir).write_comparison(result, filename=export)
        logger.info("Comparison written to %s", path)
    return result


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Compare package variants side by side")
    parser.add_argument("input", type=Path, help="JSON file with itinerary, catalog records, variants and overrides")
    parser.add_argument("--export", help="Write the comparison to this file under the output directory")
    parser.add_argument("--package-id", help="Load variants for this package from the SQLite store")
    parser.add_argument("--catalog", action="store_true", help="Resolve names through the catalog service")
    args = parser.parse_args()
    main(args.input, export=args.export, package_id=args.package_id, use_catalog=args.catalog)
