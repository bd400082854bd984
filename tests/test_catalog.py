import pytest

from jewel_pricing.catalog import match_by_name, parse_identifier
from jewel_pricing.db import add_metal_type, add_stone_type, seed_default_materials
from jewel_pricing.models import MetalType, StoneType


@pytest.fixture
def stone_ids(conn):
    return {
        "ruby": add_stone_type(conn, StoneType(None, "Ruby", "", 4000, 1)),
        "natural_diamond": add_stone_type(conn, StoneType(None, "Natural Diamond", "", 60000, 2)),
        "diamond": add_stone_type(conn, StoneType(None, "Diamond", "", 50000, 3)),
        "zero": add_stone_type(conn, StoneType(None, "Zero Stone", "", 0, 4)),
        "opal": add_stone_type(conn, StoneType(None, "Opal", "", 900, 5, is_active=False)),
    }


@pytest.fixture
def metal_ids(conn):
    return {
        "18k": add_metal_type(conn, MetalType(None, "18K Gold", "", 75, 1)),
        "22k": add_metal_type(conn, MetalType(None, "22K Gold", "", 91, 2)),
    }


@pytest.mark.parametrize(
    "raw, expected",
    [(7, 7), ("12", 12), (" 12 ", 12), ("Ruby", "Ruby"), ("", None), ("   ", None), (True, None)],
)
def test_parse_identifier(raw, expected):
    assert parse_identifier(raw) == expected


def test_stone_lookup_by_id(catalog, stone_ids):
    assert catalog.get_stone_price_per_carat(stone_ids["ruby"]) == 4000
    assert catalog.get_stone_price_per_carat(str(stone_ids["ruby"])) == 4000


def test_unknown_identifiers_return_none(catalog, stone_ids, metal_ids):
    assert catalog.get_stone_price_per_carat(9999) is None
    assert catalog.get_stone_price_per_carat("Moonstone") is None
    assert catalog.get_stone_price_per_carat("") is None
    assert catalog.get_metal_price_modifier(9999) is None
    assert catalog.get_metal_price_modifier("Platinum") is None


def test_stone_exact_name_is_case_insensitive(catalog, stone_ids):
    assert catalog.get_stone_price_per_carat("rUBY") == 4000


def test_stone_partial_name_prefers_longest_catalog_name(catalog, stone_ids):
    assert catalog.get_stone_price_per_carat("Burmese Ruby") == 4000
    assert catalog.get_stone_price_per_carat("Natural Diamond Solitaire") == 60000


def test_zero_price_counts_as_miss(catalog, stone_ids):
    assert catalog.get_stone_price_per_carat(stone_ids["zero"]) is None


def test_inactive_stones_only_reachable_by_id(catalog, stone_ids):
    assert catalog.get_stone_price_per_carat("Opal") is None
    assert catalog.get_stone_price_per_carat(stone_ids["opal"]) == 900


def test_metal_lookup_by_id_and_name(catalog, metal_ids):
    assert catalog.get_metal_price_modifier(metal_ids["22k"]) == 91
    assert catalog.get_metal_price_modifier("18k gold") == 75


def test_match_by_name_exact_beats_partial():
    stones = [
        StoneType(1, "Diamond", "", 50000),
        StoneType(2, "Diamond Dust", "", 10),
    ]
    assert match_by_name("diamond", stones).id == 1
    assert match_by_name("   ", stones) is None


def test_catalog_names_inside_the_query_beat_broader_names():
    stones = [
        StoneType(1, "Lab Grown Diamond", "", 20000, 2),
        StoneType(2, "Natural Diamond", "", 56000, 1),
        StoneType(3, "Ruby", "", 3000, 3),
    ]
    assert match_by_name("Pigeon blood ruby", stones).id == 3
    # Neither name is inside "diamond", so the first in display order wins.
    assert match_by_name("diamond", stones).id == 2


def test_plain_diamond_in_seeded_catalog_is_natural(conn, catalog):
    seed_default_materials(conn)

    assert catalog.get_stone_price_per_carat("Diamond") == 56000
    assert catalog.get_stone_price_per_carat("Lab Grown Diamond Halo") == 20000
    assert catalog.get_stone_price_per_carat("Sapphire") == 3000
