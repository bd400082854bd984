"""
test_estimation.py: static fallback tables

Checks rule priority (first match wins), the commercial metal zero-cost
rule, karat spellings and the craftsmanship multipliers.
"""

import pytest

from jewel_pricing.estimation import (
    DEFAULT_GEM_PRICE_INR,
    DEFAULT_METAL_MODIFIER,
    GEM_PRICE_RULES_INR,
    MaterialKind,
    craftsmanship_multiplier,
    estimate_unit_price,
    is_commercial_metal,
    match_rule,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Natural Diamond", 56000),
        ("Lab Grown Diamond", 20000),
        ("Synthetic diamond", 20000),
        ("Lab Polki", 7000),
        ("Polki", 15000),
        ("Pigeon Blood Ruby", 3000),
        ("Blue Sapphire", 3000),
        ("Emerald", 3500),
        ("Tanzanite", 1500),
        ("Rose Quartz", 1500),
        ("Morganite", 1500),
        ("South Sea Pearl", 300),
        ("Freshwater Pearl", 100),
        ("CZ", 1000),
        ("Swarovski crystal", 1000),
        ("Onyx", DEFAULT_GEM_PRICE_INR),
        ("", DEFAULT_GEM_PRICE_INR),
    ],
)
def test_gem_estimates(name, expected):
    assert estimate_unit_price(name, MaterialKind.GEM) == expected


def test_gem_rules_first_match_wins():
    assert estimate_unit_price("Diamond and Ruby cluster", MaterialKind.GEM) == 56000
    assert estimate_unit_price("Ruby Polki", MaterialKind.GEM) == 15000


def test_gem_match_is_case_insensitive():
    assert estimate_unit_price("  LAB DIAMOND ", MaterialKind.GEM) == 20000


@pytest.mark.parametrize(
    "name, expected",
    [
        ("24K Gold", 1.0),
        ("22 k gold", 0.91),
        ("18k Rose Gold", 0.75),
        ("14K White Gold", 0.58),
        ("Sterling Silver", DEFAULT_METAL_MODIFIER),
        ("Commercial Metal Band", 0.0),
    ],
)
def test_metal_estimates(name, expected):
    assert estimate_unit_price(name, MaterialKind.METAL) == expected


def test_commercial_metal_detection():
    assert is_commercial_metal("COMMERCIAL METAL")
    assert is_commercial_metal("Gold plated commercial metal")
    assert not is_commercial_metal("18K Gold")
    assert not is_commercial_metal(None)


def test_match_rule_returns_none_for_unknown():
    assert match_rule("Onyx", GEM_PRICE_RULES_INR) is None
    assert match_rule("natural diamond", GEM_PRICE_RULES_INR).label == "Natural diamond"


@pytest.mark.parametrize(
    "product_type, expected",
    [
        ("Diamond Necklace", 1.3),
        ("Choker", 1.3),
        ("Tennis Bracelet", 1.15),
        ("Bangle", 1.15),
        ("Stud Earrings", 1.1),
        ("Pendant", 1.05),
        ("Ring", 1.0),
        ("Brooch", 1.0),
    ],
)
def test_craftsmanship_multiplier(product_type, expected):
    assert craftsmanship_multiplier(product_type) == expected
