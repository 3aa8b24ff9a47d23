"""Tests for the fold rule and variant matching."""

from ordercloud_export.models import ItemVariation, SellableItem
from ordercloud_export.variations import (
    VARIATION_PROPERTY_TABLE,
    VariationPropertyKind,
    get_variation_summary,
    get_variations_summary,
    requires_variants,
    will_fold_into_standalone_product,
)


def _item(*variations):
    return SellableItem(friendly_id="6042567", display_name="Shirt", variations=list(variations))


def _variant(**specs):
    return {"ID": "v", "Specs": [{"Name": n, "Value": v} for n, v in specs.items()]}


def test_single_variation_without_properties_folds():
    item = _item(ItemVariation(id="56042567"))
    assert requires_variants(item) is False
    assert will_fold_into_standalone_product(item) is True


def test_single_blank_color_still_folds():
    item = _item(ItemVariation(id="56042567", color="  ", size=""))
    assert requires_variants(item) is False
    assert will_fold_into_standalone_product(item) is True


def test_single_variation_with_color_requires_variants():
    item = _item(ItemVariation(id="56042567", color="Red"))
    assert requires_variants(item) is True
    assert will_fold_into_standalone_product(item) is False


def test_multiple_variations_require_variants():
    item = _item(ItemVariation(id="1"), ItemVariation(id="2"))
    assert requires_variants(item) is True
    assert will_fold_into_standalone_product(item) is False


def test_no_variations_neither_requires_nor_folds():
    item = _item()
    assert requires_variants(item) is False
    assert will_fold_into_standalone_product(item) is False


def test_property_table_covers_every_kind():
    assert set(VARIATION_PROPERTY_TABLE) == set(VariationPropertyKind)


def test_summary_collects_distinct_properties_in_order():
    item = _item(
        ItemVariation(id="1", color="Red", size="S"),
        ItemVariation(id="2", color="Blue", size="S"),
        ItemVariation(id="3"),
    )
    summary = get_variations_summary(item)

    assert summary.unique_properties == ["Color", "Size"]
    assert [v.id for v in summary.variations] == ["1", "2"]
    assert summary.get_distinct_values("Color") == ["Red", "Blue"]
    assert summary.get_distinct_values("Size") == ["S"]


def test_variant_matches_exact_property_set():
    item = _item(ItemVariation(id="1", color="Red"), ItemVariation(id="2", color="Blue"))
    summary = get_variations_summary(item)

    assert get_variation_summary(summary, _variant(Color="Blue")).id == "2"
    assert get_variation_summary(summary, _variant(Color="Green")) is None


def test_partial_property_match_is_not_a_match():
    item = _item(ItemVariation(id="1", color="Red", size="M"), ItemVariation(id="2", color="Red", size="L"))
    summary = get_variations_summary(item)

    assert get_variation_summary(summary, _variant(Color="Red")) is None
    assert get_variation_summary(summary, _variant(Color="Red", Size="L")).id == "2"


def test_first_matching_variation_wins():
    item = _item(ItemVariation(id="1", color="Red"), ItemVariation(id="2", color="Red"))
    summary = get_variations_summary(item)
    assert get_variation_summary(summary, _variant(Color="Red")).id == "1"


def test_variation_missing_a_property_never_matches_a_generated_variant():
    item = _item(ItemVariation(id="1", color="Red"), ItemVariation(id="2", color="Blue", size="L"))
    summary = get_variations_summary(item)

    assert summary.unique_properties == ["Color", "Size"]
    assert get_variation_summary(summary, _variant(Color="Red", Size="L")) is None
    assert get_variation_summary(summary, _variant(Color="Blue", Size="L")).id == "2"
