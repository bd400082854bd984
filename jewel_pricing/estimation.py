"""
Static price estimation tables.

Every table is an ordered tuple of rules evaluated top-to-bottom against the
lowercased material name; the first matching rule wins. Keep more specific
rules (lab diamond, south sea pearl, earring) above the general ones they
would otherwise be shadowed by.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence


class MaterialKind(str, Enum):
    METAL = "metal"
    GEM = "gem"


@dataclass(frozen=True)
class PriceRule:
    keywords: tuple[str, ...]
    price: float
    qualifiers: tuple[str, ...] = ()
    label: str = ""

    def matches(self, normalized_name: str) -> bool:
        if not any(keyword in normalized_name for keyword in self.keywords):
            return False
        return not self.qualifiers or any(q in normalized_name for q in self.qualifiers)


COMMERCIAL_METAL_KEYWORD = "commercial metal"

# Fraction of the 24K gold price.
METAL_MODIFIER_RULES: tuple[PriceRule, ...] = (
    PriceRule((COMMERCIAL_METAL_KEYWORD,), 0.0, label="Commercial metal"),
    PriceRule(("24k", "24 k"), 1.0, label="24K gold"),
    PriceRule(("22k", "22 k"), 0.91, label="22K gold"),
    PriceRule(("18k", "18 k"), 0.75, label="18K gold"),
    PriceRule(("14k", "14 k"), 0.58, label="14K gold"),
)
DEFAULT_METAL_MODIFIER = 0.75

# INR per carat.
LAB_DIAMOND_PRICE_INR = 20_000
NATURAL_DIAMOND_PRICE_INR = 56_000
LAB_POLKI_PRICE_INR = 7_000
NATURAL_POLKI_PRICE_INR = 15_000
RUBY_PRICE_INR = 3_000
SAPPHIRE_PRICE_INR = 3_000
EMERALD_PRICE_INR = 3_500
TANZANITE_PRICE_INR = 1_500
SEMI_PRECIOUS_PRICE_INR = 1_500
SOUTH_SEA_PEARL_PRICE_INR = 300
PEARL_PRICE_INR = 100
SIMULANT_PRICE_INR = 1_000
DEFAULT_GEM_PRICE_INR = 500

GEM_PRICE_RULES_INR: tuple[PriceRule, ...] = (
    PriceRule(("diamond",), LAB_DIAMOND_PRICE_INR, ("lab", "synthetic"), "Lab-grown diamond"),
    PriceRule(("diamond",), NATURAL_DIAMOND_PRICE_INR, label="Natural diamond"),
    PriceRule(("polki",), LAB_POLKI_PRICE_INR, ("lab",), "Lab polki"),
    PriceRule(("polki",), NATURAL_POLKI_PRICE_INR, label="Natural polki"),
    PriceRule(("ruby",), RUBY_PRICE_INR, label="Ruby"),
    PriceRule(("sapphire",), SAPPHIRE_PRICE_INR, label="Sapphire"),
    PriceRule(("emerald",), EMERALD_PRICE_INR, label="Emerald"),
    PriceRule(("tanzanite",), TANZANITE_PRICE_INR, label="Tanzanite"),
    PriceRule(("amethyst", "quartz", "morganite"), SEMI_PRECIOUS_PRICE_INR, label="Semi-precious"),
    PriceRule(("pearl",), SOUTH_SEA_PEARL_PRICE_INR, ("south sea",), "South sea pearl"),
    PriceRule(("pearl",), PEARL_PRICE_INR, label="Pearl"),
    PriceRule(("cz", "swarovski"), SIMULANT_PRICE_INR, label="CZ / Swarovski"),
)

# Quick estimate tables are quoted in USD and were tuned separately from the
# INR tables above, so the two are not expected to agree.
QUICK_METAL_RULES_USD: tuple[PriceRule, ...] = (
    PriceRule((COMMERCIAL_METAL_KEYWORD,), 0.0, label="Commercial metal"),
    PriceRule(("platinum",), 34.0, label="Platinum"),
    PriceRule(("silver",), 1.0, label="Sterling silver"),
    PriceRule(("24k", "24 k"), 85.0, label="24K gold"),
    PriceRule(("22k", "22 k"), 78.0, label="22K gold"),
    PriceRule(("18k", "18 k"), 65.0, ("white",), "18K white gold"),
    PriceRule(("18k", "18 k"), 64.0, label="18K gold"),
    PriceRule(("14k", "14 k"), 50.0, label="14K gold"),
)
QUICK_DEFAULT_METAL_USD_PER_GRAM = 50.0

QUICK_GEM_RULES_USD: tuple[PriceRule, ...] = (
    PriceRule(("diamond",), 3500.0, label="Diamond"),
    PriceRule(("ruby",), 1200.0, label="Ruby"),
    PriceRule(("sapphire",), 1000.0, label="Sapphire"),
    PriceRule(("emerald",), 800.0, label="Emerald"),
    PriceRule(("tanzanite",), 600.0, label="Tanzanite"),
    PriceRule(("aquamarine",), 500.0, label="Aquamarine"),
    PriceRule(("opal",), 400.0, label="Opal"),
    PriceRule(("tourmaline",), 350.0, label="Tourmaline"),
    PriceRule(("amethyst", "morganite", "peridot"), 300.0, label="Semi-precious"),
    PriceRule(("garnet",), 250.0, label="Garnet"),
    PriceRule(("topaz",), 200.0, label="Topaz"),
    PriceRule(("pearl", "citrine"), 150.0, label="Pearl / citrine"),
)
QUICK_DEFAULT_GEM_USD_PER_CARAT = 200.0

CRAFTSMANSHIP_MULTIPLIER_RULES: tuple[PriceRule, ...] = (
    PriceRule(("necklace", "choker"), 1.3, label="Necklace"),
    PriceRule(("bracelet", "bangle"), 1.15, label="Bracelet"),
    PriceRule(("earring",), 1.1, label="Earring"),
    PriceRule(("pendant",), 1.05, label="Pendant"),
    PriceRule(("ring",), 1.0, label="Ring"),
)
DEFAULT_CRAFTSMANSHIP_MULTIPLIER = 1.0


def normalize_name(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def match_rule(name: Optional[str], rules: Sequence[PriceRule]) -> Optional[PriceRule]:
    normalized = normalize_name(name)
    for rule in rules:
        if rule.matches(normalized):
            return rule
    return None


def lookup_price(name: Optional[str], rules: Sequence[PriceRule], default: float) -> float:
    rule = match_rule(name, rules)
    return rule.price if rule is not None else default


def is_commercial_metal(metal_name: Optional[str]) -> bool:
    return COMMERCIAL_METAL_KEYWORD in normalize_name(metal_name)


def estimate_unit_price(material_name: Optional[str], kind: MaterialKind) -> float:
    """
    Returns the fallback unit price for a material.

    Metals resolve to a fraction of the 24K gold price; gems resolve to INR
    per carat.
    """
    if kind == MaterialKind.METAL:
        return lookup_price(material_name, METAL_MODIFIER_RULES, DEFAULT_METAL_MODIFIER)
    return lookup_price(material_name, GEM_PRICE_RULES_INR, DEFAULT_GEM_PRICE_INR)


def craftsmanship_multiplier(product_type: Optional[str]) -> float:
    return lookup_price(product_type, CRAFTSMANSHIP_MULTIPLIER_RULES, DEFAULT_CRAFTSMANSHIP_MULTIPLIER)
