from dataclasses import dataclass, field
from typing import Optional, Union

Identifier = Union[int, str]


@dataclass
class MetalType:
    id: Optional[int]
    name: str
    description: str
    price_modifier: float
    display_order: int = 0
    is_active: bool = True


@dataclass
class StoneType:
    id: Optional[int]
    name: str
    description: str
    price_modifier: float
    display_order: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class GemInput:
    name: str
    carats: Optional[float] = None
    stone_type_id: Optional[Identifier] = None


@dataclass(frozen=True)
class PricingRequest:
    product_type: str
    metal_type: str
    metal_weight_grams: float
    metal_type_id: Optional[Identifier] = None
    primary_gems: tuple[GemInput, ...] = ()
    other_stone: Optional[GemInput] = None

    def all_gems(self) -> list[GemInput]:
        gems = list(self.primary_gems)
        if self.other_stone is not None:
            gems.append(self.other_stone)
        return gems


@dataclass(frozen=True)
class GemCostLine:
    name: str
    carats: float
    unit_price: float
    subtotal: float
    source: str
    carats_defaulted: bool = False
    is_other_stone: bool = False


@dataclass(frozen=True)
class PriceBreakdown:
    metal_cost: float
    per_gem_cost: tuple[GemCostLine, ...]
    stone_cost: float
    overhead: float
    total_inr: int
    total_usd: int
    exchange_rate_used: float
    metal_price_modifier: float = 0.0
    metal_modifier_source: str = ""
    metal_modifier_defaulted: bool = False
    gold_price_per_gram: float = 0.0
    gold_price_is_live: bool = False
    exchange_rate_is_live: bool = False
    is_emergency_fallback: bool = False


@dataclass(frozen=True)
class QuickEstimate:
    price_usd: int
    price_inr: int


@dataclass(frozen=True)
class MarketQuote:
    value: float
    is_live: bool
    timestamp: str
    source: str
    warning: Optional[str] = field(default=None, compare=False)
