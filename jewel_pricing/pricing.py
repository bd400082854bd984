import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from jewel_pricing.catalog import MaterialCatalog
from jewel_pricing.estimation import (
    DEFAULT_GEM_PRICE_INR,
    DEFAULT_METAL_MODIFIER,
    GEM_PRICE_RULES_INR,
    METAL_MODIFIER_RULES,
    QUICK_DEFAULT_GEM_USD_PER_CARAT,
    QUICK_DEFAULT_METAL_USD_PER_GRAM,
    QUICK_GEM_RULES_USD,
    QUICK_METAL_RULES_USD,
    craftsmanship_multiplier,
    is_commercial_metal,
    lookup_price,
    match_rule,
)
from jewel_pricing.models import (
    GemCostLine,
    GemInput,
    Identifier,
    PriceBreakdown,
    PricingRequest,
    QuickEstimate,
)
from jewel_pricing.money import round_half_up, round_money, round_to_nearest
from jewel_pricing.providers.market_feed import DEFAULT_USD_INR_RATE, MarketPriceFeed

logger = logging.getLogger(__name__)

OVERHEAD_RATE = 0.25
DEFAULT_GEM_CARATS = 0.5

EMERGENCY_PRICE_INR = 95_000
EMERGENCY_PRICE_USD = 1_200

QUICK_ESTIMATE_USD_INR_RATE = 83.5
QUICK_CRAFTSMANSHIP_PREMIUM = 0.3
QUICK_MINIMUM_PRICE_USD = 100.0
QUICK_INR_ROUNDING_STEP = 10

SOURCE_COMMERCIAL_METAL = "commercial_metal"
SOURCE_CATALOG_ID = "catalog_id"
SOURCE_CATALOG_NAME = "catalog_name"
SOURCE_ESTIMATE = "estimate"
SOURCE_DEFAULT = "default"

SAMPLE_REQUEST = PricingRequest(
    product_type="Necklace",
    metal_type="18k Yellow Gold",
    metal_weight_grams=12,
    primary_gems=(GemInput("Natural Diamond", carats=2.5),),
)

LegacyGem = Union[GemInput, Mapping[str, Any]]


@dataclass(frozen=True)
class PricingConfig:
    """Business parameters that differ between the authoritative and quick estimators."""

    quick_estimate_usd_inr_rate: float = QUICK_ESTIMATE_USD_INR_RATE
    emergency_price_inr: int = EMERGENCY_PRICE_INR
    emergency_price_usd: int = EMERGENCY_PRICE_USD
    emergency_exchange_rate: float = DEFAULT_USD_INR_RATE

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "PricingConfig":
        return cls(
            quick_estimate_usd_inr_rate=float(
                settings.get("quick_estimate_usd_inr_rate", QUICK_ESTIMATE_USD_INR_RATE)
            ),
            emergency_exchange_rate=float(settings.get("default_usd_inr_rate", DEFAULT_USD_INR_RATE)),
        )


class PriceEngine:
    """
    Prices a piece of jewellery from its materials.

    Metal cost is weight x live 24K gold price x karat modifier; each stone is
    carats x per-carat price; a fixed 25% overhead is added on top and the INR
    total is converted to USD at the live exchange rate. Catalog misses fall
    through to the static estimation tables, and any unexpected failure yields
    the emergency breakdown instead of an exception.
    """

    def __init__(
        self,
        catalog: MaterialCatalog,
        feed: MarketPriceFeed,
        config: Optional[PricingConfig] = None,
    ):
        self.catalog = catalog
        self.feed = feed
        self.config = config or PricingConfig()

    def calculate(self, request: PricingRequest) -> PriceBreakdown:
        try:
            return self._calculate(request)
        except Exception:
            logger.exception("Error calculating jewellery price; returning emergency price")
            return self.emergency_breakdown()

    def calculate_legacy(
        self,
        product_type: str,
        metal_type: str,
        metal_weight: float,
        primary_gems: Optional[Iterable[LegacyGem]] = None,
        metal_type_id: Optional[Identifier] = None,
        other_stone_type: Optional[str] = None,
        other_stone_weight: Optional[float] = None,
    ) -> PriceBreakdown:
        """Adapter for callers still passing loose arguments and gem dicts."""
        request = build_legacy_request(
            product_type,
            metal_type,
            metal_weight,
            primary_gems,
            metal_type_id,
            other_stone_type,
            other_stone_weight,
        )
        return self.calculate(request)

    def quick_estimate(self, request: PricingRequest) -> QuickEstimate:
        """
        Market-rate estimate used for AI-generated product copy.

        Never consults the catalog or the live feed. The 30% craftsmanship
        premium is part of the base price (there is no separate overhead line),
        then a product-type multiplier and a 100 USD floor are applied.
        """
        try:
            metal_per_gram = lookup_price(
                request.metal_type, QUICK_METAL_RULES_USD, QUICK_DEFAULT_METAL_USD_PER_GRAM
            )
            metal_price = metal_per_gram * _non_negative(request.metal_weight_grams)

            gem_price = 0.0
            for gem in request.all_gems():
                carats, _ = _resolve_carats(gem.carats)
                gem_price += carats * lookup_price(gem.name, QUICK_GEM_RULES_USD, QUICK_DEFAULT_GEM_USD_PER_CARAT)

            base_price = (metal_price + gem_price) * (1 + QUICK_CRAFTSMANSHIP_PREMIUM)
            total_usd = max(base_price * craftsmanship_multiplier(request.product_type), QUICK_MINIMUM_PRICE_USD)
            return QuickEstimate(
                price_usd=round_half_up(total_usd),
                price_inr=round_to_nearest(total_usd * self.config.quick_estimate_usd_inr_rate, QUICK_INR_ROUNDING_STEP),
            )
        except Exception:
            logger.exception("Error producing quick estimate; returning emergency price")
            return QuickEstimate(self.config.emergency_price_usd, self.config.emergency_price_inr)

    def emergency_breakdown(self) -> PriceBreakdown:
        return PriceBreakdown(
            metal_cost=0,
            per_gem_cost=(),
            stone_cost=0,
            overhead=0,
            total_inr=self.config.emergency_price_inr,
            total_usd=self.config.emergency_price_usd,
            exchange_rate_used=self.config.emergency_exchange_rate,
            is_emergency_fallback=True,
        )

    def resolve_metal_modifier(self, metal_type: str, metal_type_id: Optional[Identifier] = None) -> tuple[float, str, bool]:
        """Returns (fraction of 24K price, source, defaulted)."""
        if is_commercial_metal(metal_type):
            return 0.0, SOURCE_COMMERCIAL_METAL, False

        if _has_identifier(metal_type_id):
            percentage = self.catalog.get_metal_price_modifier(metal_type_id)
            if percentage:
                return percentage / 100, SOURCE_CATALOG_ID, False

        if (metal_type or "").strip():
            percentage = self.catalog.get_metal_price_modifier(metal_type)
            if percentage:
                return percentage / 100, SOURCE_CATALOG_NAME, False

        rule = match_rule(metal_type, METAL_MODIFIER_RULES)
        if rule is not None:
            return rule.price, SOURCE_ESTIMATE, False

        logger.debug("Unrecognised metal %r, assuming 18K", metal_type)
        return DEFAULT_METAL_MODIFIER, SOURCE_DEFAULT, True

    def resolve_gem(self, gem: GemInput, is_other_stone: bool = False) -> GemCostLine:
        carats, carats_defaulted = _resolve_carats(gem.carats)
        unit_price, source = self._resolve_stone_price(gem)
        return GemCostLine(
            name=gem.name,
            carats=carats,
            unit_price=unit_price,
            subtotal=round_money(carats * unit_price),
            source=source,
            carats_defaulted=carats_defaulted,
            is_other_stone=is_other_stone,
        )

    def _resolve_stone_price(self, gem: GemInput) -> tuple[float, str]:
        if _has_identifier(gem.stone_type_id):
            price = self.catalog.get_stone_price_per_carat(gem.stone_type_id)
            if price:
                return price, SOURCE_CATALOG_ID

        if (gem.name or "").strip():
            price = self.catalog.get_stone_price_per_carat(gem.name)
            if price:
                return price, SOURCE_CATALOG_NAME

        rule = match_rule(gem.name, GEM_PRICE_RULES_INR)
        if rule is not None:
            return rule.price, SOURCE_ESTIMATE
        return DEFAULT_GEM_PRICE_INR, SOURCE_DEFAULT

    def _calculate(self, request: PricingRequest) -> PriceBreakdown:
        modifier, modifier_source, modifier_defaulted = self.resolve_metal_modifier(
            request.metal_type, request.metal_type_id
        )
        gold = self.feed.get_gold_price_per_gram()
        metal_cost = _non_negative(request.metal_weight_grams) * gold.value * modifier

        lines = [self.resolve_gem(gem) for gem in request.primary_gems]
        if request.other_stone is not None:
            lines.append(self.resolve_gem(request.other_stone, is_other_stone=True))
        stone_cost = sum(line.subtotal for line in lines)

        # Components stay unrounded; only the total is rounded to whole rupees.
        overhead = (metal_cost + stone_cost) * OVERHEAD_RATE
        total_inr = round_half_up(metal_cost + stone_cost + overhead)

        rate = self.feed.get_exchange_rate()
        total_usd = round_half_up(total_inr / rate.value)

        return PriceBreakdown(
            metal_cost=round_money(metal_cost),
            per_gem_cost=tuple(lines),
            stone_cost=round_money(stone_cost),
            overhead=round_money(overhead),
            total_inr=total_inr,
            total_usd=total_usd,
            exchange_rate_used=rate.value,
            metal_price_modifier=modifier,
            metal_modifier_source=modifier_source,
            metal_modifier_defaulted=modifier_defaulted,
            gold_price_per_gram=gold.value,
            gold_price_is_live=gold.is_live,
            exchange_rate_is_live=rate.is_live,
        )


def _has_identifier(value: Optional[Identifier]) -> bool:
    return value is not None and str(value).strip() != ""


def _non_negative(value: Optional[float]) -> float:
    return max(0.0, float(value or 0))


def _resolve_carats(carats: Optional[float]) -> tuple[float, bool]:
    if carats is None or carats <= 0:
        return DEFAULT_GEM_CARATS, True
    return float(carats), False


def _gem_from_legacy(item: LegacyGem) -> GemInput:
    if isinstance(item, GemInput):
        return item
    stone_type_id = item.get("stone_type_id", item.get("stoneTypeId"))
    return GemInput(name=str(item.get("name", "")), carats=item.get("carats"), stone_type_id=stone_type_id)


def build_legacy_request(
    product_type: str,
    metal_type: str,
    metal_weight: float,
    primary_gems: Optional[Iterable[LegacyGem]] = None,
    metal_type_id: Optional[Identifier] = None,
    other_stone_type: Optional[str] = None,
    other_stone_weight: Optional[float] = None,
) -> PricingRequest:
    other_stone = None
    if other_stone_type and other_stone_type.strip():
        other_stone = GemInput(name=other_stone_type.strip(), carats=other_stone_weight or None)
    return PricingRequest(
        product_type=product_type,
        metal_type=metal_type,
        metal_weight_grams=metal_weight,
        metal_type_id=metal_type_id,
        primary_gems=tuple(_gem_from_legacy(item) for item in primary_gems or ()),
        other_stone=other_stone,
    )


def describe_breakdown(request: PricingRequest, breakdown: PriceBreakdown) -> str:
    """Worked, human-readable explanation of a breakdown."""
    if breakdown.is_emergency_fallback:
        return (
            "Price could not be calculated from materials. "
            f"Showing the standard price of ₹{breakdown.total_inr:,} (${breakdown.total_usd:,})."
        )

    lines = [
        "1. Metal cost:",
        f"   {request.metal_weight_grams} g × ₹{breakdown.gold_price_per_gram:,.2f} (24K gold per gram)"
        f" × {breakdown.metal_price_modifier:.2f} ({request.metal_type})",
        f"   = ₹{breakdown.metal_cost:,.2f}",
        "",
        "2. Stone cost:",
    ]
    if not breakdown.per_gem_cost:
        lines.append("   No stones")
    for gem in breakdown.per_gem_cost:
        assumed = " (assumed)" if gem.carats_defaulted else ""
        lines.append(
            f"   {gem.name}: {gem.carats} ct{assumed} × ₹{gem.unit_price:,.0f}/ct = ₹{gem.subtotal:,.2f}"
        )
    lines += [
        f"   = ₹{breakdown.stone_cost:,.2f}",
        "",
        f"3. Overhead ({OVERHEAD_RATE:.0%}):",
        f"   ₹{breakdown.metal_cost + breakdown.stone_cost:,.2f} × {OVERHEAD_RATE} = ₹{breakdown.overhead:,.2f}",
        "",
        "4. Total price:",
        f"   ₹{breakdown.total_inr:,}",
        "",
        "5. USD equivalent:",
        f"   ₹{breakdown.total_inr:,} ÷ {breakdown.exchange_rate_used} = ${breakdown.total_usd:,}",
    ]
    if not (breakdown.gold_price_is_live and breakdown.exchange_rate_is_live):
        lines += ["", "Note: cached or default market rates were used."]
    return "\n".join(lines)
