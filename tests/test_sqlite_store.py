from __future__ import annotations

import sqlite3

import pytest

from package_variants.storage import SqliteStore
from package_variants.variants import SeasonalPricingStore, Variant, VariantList, normalize_variant


def _draft(start: str, end: str) -> dict:
    return {
        "start_date": start,
        "end_date": end,
        "meal_plan_id": "MAP",
        "number_of_rooms": 2,
        "pricing_components": [
            {"attribute_id": "attr-stay", "attribute_name": "Stay", "price": 8000, "purchase_price": 6000},
            {"attribute_id": "attr-transfer", "price": 1500},
        ],
    }


def test_variants_round_trip_through_store(tmp_path) -> None:
    with SqliteStore(tmp_path / "variants.sqlite3") as store:
        standard = Variant(name="Standard", is_default=True, hotel_mappings={"it-1": "h-1", "it-2": "h-2"})
        luxury = Variant(name="Luxury", sort_order=1, price_modifier=20.0)
        luxury.id = store.create_variant("pkg-1", luxury)
        standard.id = store.create_variant("pkg-1", standard)
        store.create_variant("pkg-2", Variant(name="Elsewhere"))

        records = store.list_variants("pkg-1")
        variants = VariantList.from_records(records)

    assert [variant.name for variant in variants] == ["Standard", "Luxury"]
    assert variants[0].is_default
    assert variants[0].hotel_mappings == {"it-1": "h-1", "it-2": "h-2"}
    assert variants[1].price_modifier == 20.0


def test_update_and_delete_variant(tmp_path) -> None:
    with SqliteStore(tmp_path / "variants.sqlite3") as store:
        variant = Variant(name="Standard", hotel_mappings={"it-1": "h-1"})
        variant.id = store.create_variant("pkg-1", variant)

        variant.name = "Classic"
        variant.hotel_mappings = {"it-1": "h-9"}
        store.update_variant(variant)
        record = store.get_variant(variant.id)
        assert record["name"] == "Classic"
        assert record["hotel_mappings"] == {"it-1": "h-9"}

        store.delete_variant(variant.id)
        assert store.get_variant(variant.id) is None
        with pytest.raises(KeyError):
            store.delete_variant(variant.id)
        with pytest.raises(KeyError):
            store.update_variant(variant)


def test_store_backs_seasonal_pricing(tmp_path) -> None:
    with SqliteStore(tmp_path / "variants.sqlite3") as store:
        variant = Variant(name="Standard")
        variant.id = store.create_variant("pkg-1", variant)
        pricing = SeasonalPricingStore(store, package_id="pkg-1")

        summer = pricing.create(variant, _draft("2025-07-01", "2025-09-30"))
        spring = pricing.create(variant, _draft("2025-04-01", "2025-06-30"))
        pricing.update(variant, summer.id, {**_draft("2025-07-01", "2025-09-30"), "meal_plan_id": "AP"})

        reloaded = normalize_variant(store.get_variant(variant.id))

        pricing.delete(variant, spring.id)
        remaining = store.list_pricing_periods(variant.id)

    assert [period.id for period in reloaded.seasonal_pricings] == [spring.id, summer.id]
    stored_summer = reloaded.seasonal_pricings[1]
    assert stored_summer.meal_plan_id == "AP"
    assert stored_summer.number_of_rooms == 2
    assert [component.name for component in stored_summer.pricing_components] == ["Stay", "attr-transfer"]
    assert stored_summer.pricing_components[0].purchase_price == 6000
    assert stored_summer.total_component_price == 9500
    assert [period["id"] for period in remaining] == [summer.id]


def test_pricing_period_writes_are_scoped_by_package(tmp_path) -> None:
    with SqliteStore(tmp_path / "variants.sqlite3") as store:
        variant = Variant(name="Standard")
        variant.id = store.create_variant("pkg-1", variant)
        period_id = store.create_pricing_period("pkg-1", variant.id, {"start_date": "a", "end_date": "b", "meal_plan_id": "MAP"})

        with pytest.raises(KeyError):
            store.delete_pricing_period("pkg-2", period_id)
        store.delete_pricing_period("pkg-1", period_id)


def test_deleting_variant_cascades(tmp_path) -> None:
    db_path = tmp_path / "variants.sqlite3"
    with SqliteStore(db_path) as store:
        variant = Variant(name="Standard", hotel_mappings={"it-1": "h-1"})
        variant.id = store.create_variant("pkg-1", variant)
        SeasonalPricingStore(store, package_id="pkg-1").create(variant, _draft("2025-04-01", "2025-06-30"))
        store.delete_variant(variant.id)

    conn = sqlite3.connect(db_path)
    try:
        for table in ("variant_hotel_mappings", "pricing_periods", "pricing_components"):
            assert conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0] == 0
        assert conn.execute("SELECT value FROM meta WHERE key='schema_version'").fetchone()[0] == "2"
    finally:
        conn.close()


def test_store_requires_initialisation(tmp_path) -> None:
    store = SqliteStore(tmp_path / "variants.sqlite3")
    with pytest.raises(RuntimeError):
        store.list_variants("pkg-1")
