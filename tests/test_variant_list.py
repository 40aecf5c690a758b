from __future__ import annotations

import pytest

from package_variants.config.settings import Settings
from package_variants.core.errors import LastVariantRemoval
from package_variants.variants import Variant, VariantList


def test_empty_records_yield_default_variant():
    variants = VariantList.from_records([])

    assert len(variants) == 1
    default = variants[0]
    assert default.name == "Standard"
    assert default.description == "Standard package with good quality hotels"
    assert default.is_default
    assert default.sort_order == 0
    assert not default.is_persisted
    assert variants.default is default


def test_default_variant_name_comes_from_settings():
    settings = Settings(default_variant_name="Classic", new_variant_prefix="Option")
    variants = VariantList.from_records(None, settings)
    variants.add()

    assert [variant.name for variant in variants] == ["Classic", "Option 2"]


def test_records_are_ordered_by_sort_order():
    variants = VariantList.from_records(
        [
            {"id": "v-2", "name": "Luxury", "sortOrder": 2},
            {"id": "v-1", "name": "Standard", "sortOrder": 0, "isDefault": True},
            {"id": "v-3", "name": "Premium", "sortOrder": 1},
        ]
    )
    assert [variant.name for variant in variants] == ["Standard", "Premium", "Luxury"]
    assert variants.find("v-3").name == "Premium"
    assert variants.find("missing") is None


def test_add_names_and_orders_new_variants():
    variants = VariantList.with_default()
    added = variants.add()
    named = variants.add("Budget")

    assert added.name == "Variant 2"
    assert added.sort_order == 1
    assert named.name == "Budget"
    assert named.sort_order == 2
    assert not added.is_default


def test_update_changes_allowed_fields_only():
    variants = VariantList.with_default()
    variants.update(0, name="Deluxe", price_modifier=15.0)

    assert variants[0].name == "Deluxe"
    assert variants[0].price_modifier == 15.0
    with pytest.raises(TypeError):
        variants.update(0, id="forged")


def test_set_default_is_mutually_exclusive():
    variants = VariantList([Variant(name="A", is_default=True), Variant(name="B"), Variant(name="C")])
    variants.set_default(2)

    assert [variant.is_default for variant in variants] == [False, False, True]
    variants.set_default(2, False)
    assert variants.default is None


def test_cannot_delete_last_variant():
    variants = VariantList.with_default()
    with pytest.raises(LastVariantRemoval):
        variants.delete(0)

    variants.add()
    removed = variants.delete(0)
    assert removed.name == "Standard"
    assert len(variants) == 1


def test_copy_first_variant_hotels():
    variants = VariantList(
        [
            Variant(name="A", hotel_mappings={"it-1": "h-1", "it-2": "h-2"}),
            Variant(name="B", hotel_mappings={"it-1": "h-other"}),
            Variant(name="C"),
        ]
    )

    assert variants.copy_first_variant_hotels() == 2
    assert variants[1].hotel_mappings == {"it-1": "h-1", "it-2": "h-2"}
    assert variants[2].hotel_mappings == {"it-1": "h-1", "it-2": "h-2"}
    assert variants[1].hotel_mappings is not variants[0].hotel_mappings


def test_variant_list_requires_a_variant():
    with pytest.raises(ValueError):
        VariantList([])
