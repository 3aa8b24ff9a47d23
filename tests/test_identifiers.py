"""Tests for ordercloud_export.identifiers."""

import re

import pytest

from ordercloud_export.identifiers import (
    entity_id,
    remove_id_prefix,
    sanitize,
    split_category_friendly_id,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Habitat_Master", "Habitat_Master"),
        ("Catalog1-Shoes", "Catalog1_Shoes"),
        ("my shop.com", "my_shop_com"),
        ("Crème brûlée", "Cr_me_br_l_e"),
        ("", ""),
    ],
)
def test_sanitize(raw, expected):
    assert sanitize(raw) == expected


def test_sanitize_none_is_empty():
    assert sanitize(None) == ""


def test_sanitize_is_stable_and_restricted():
    raw = "Entity-SellableItem-6042567/Red|XL"
    once = sanitize(raw)
    assert sanitize(raw) == once
    assert sanitize(once) == once
    assert re.fullmatch(r"[A-Za-z0-9_]*", once)


def test_remove_id_prefix():
    assert remove_id_prefix("Entity-SellableItem-6042567") == "6042567"
    assert remove_id_prefix("Entity-Category-Catalog1-Shoes") == "Catalog1-Shoes"


def test_remove_id_prefix_leaves_plain_ids():
    assert remove_id_prefix("6042567") == "6042567"
    assert remove_id_prefix("") == ""


def test_entity_id_round_trips_through_prefix_removal():
    assert remove_id_prefix(entity_id("Customer", "abc-123")) == "abc-123"


def test_split_category_friendly_id():
    assert split_category_friendly_id("Catalog1-Shoes") == ("Catalog1", "Shoes")
    assert split_category_friendly_id("Habitat_Master-Kids Shoes-2") == ("Habitat_Master", "Kids_Shoes_2")
