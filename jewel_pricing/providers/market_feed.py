import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from jewel_pricing.db import get_all_settings, get_cached_prices, is_price_fresh, save_price
from jewel_pricing.models import MarketQuote
from jewel_pricing.money import round_half_up
from jewel_pricing.providers.base import MarketRateProvider, PriceFeedError
from jewel_pricing.providers.exchange_rate import build_rate_provider_from_env
from jewel_pricing.providers.gold_price import build_gold_provider_from_env

logger = logging.getLogger(__name__)

GOLD_PRICE_SYMBOL = "XAU_INR_PER_GRAM"
USD_INR_SYMBOL = "USD_INR"

DEFAULT_GOLD_PRICE_INR_PER_GRAM = 9800.0
DEFAULT_USD_INR_RATE = 83.0
DEFAULT_CACHE_TTL_MINUTES = 15


@dataclass
class _CacheEntry:
    value: float
    fetched_at: str
    provider: str


class UnconfiguredProvider(MarketRateProvider):
    """Stands in for a provider whose configuration is invalid; every fetch fails."""

    provider_name = "unconfigured"

    def __init__(self, reason: str):
        self.reason = reason

    def fetch_latest(self) -> float:
        raise PriceFeedError(self.reason)


class MarketPriceFeed:
    """
    Current 24K gold price (INR per gram) and USD to INR rate.

    Each value is served from an in-memory cache while it is younger than the
    TTL. Otherwise the provider is asked for a live value; if that fails the
    last cached value is used, and with no cache at all the configured default.
    Quotes never raise; `is_live` is False whenever a fallback was used.

    When a sqlite connection is given, the last good value is persisted in the
    market_prices table so it survives restarts.
    """

    def __init__(
        self,
        gold_provider: MarketRateProvider,
        rate_provider: MarketRateProvider,
        *,
        ttl_minutes: int = DEFAULT_CACHE_TTL_MINUTES,
        default_gold_price: float = DEFAULT_GOLD_PRICE_INR_PER_GRAM,
        default_exchange_rate: float = DEFAULT_USD_INR_RATE,
        conn: Optional[sqlite3.Connection] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.gold_provider = gold_provider
        self.rate_provider = rate_provider
        self.ttl_minutes = ttl_minutes
        self.default_gold_price = default_gold_price
        self.default_exchange_rate = default_exchange_rate
        self.conn = conn
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._cache: dict[str, _CacheEntry] = {}

    def get_gold_price_per_gram(self, force_refresh: bool = False) -> MarketQuote:
        return self._get_quote(GOLD_PRICE_SYMBOL, self.gold_provider, self.default_gold_price, force_refresh)

    def get_exchange_rate(self, force_refresh: bool = False) -> MarketQuote:
        return self._get_quote(USD_INR_SYMBOL, self.rate_provider, self.default_exchange_rate, force_refresh)

    def get_cached_gold_price(self) -> float:
        entry = self._cached_entry(GOLD_PRICE_SYMBOL)
        return entry.value if entry is not None else self.default_gold_price

    def get_cached_exchange_rate(self) -> float:
        entry = self._cached_entry(USD_INR_SYMBOL)
        return entry.value if entry is not None else self.default_exchange_rate

    def convert_inr_to_usd(self, amount_inr: float) -> int:
        rate = self.get_exchange_rate().value
        return round_half_up(amount_inr / rate)

    def convert_usd_to_inr(self, amount_usd: float) -> int:
        rate = self.get_exchange_rate().value
        return round_half_up(amount_usd * rate)

    def _get_quote(
        self,
        symbol: str,
        provider: MarketRateProvider,
        default: float,
        force_refresh: bool,
    ) -> MarketQuote:
        now = self.clock()
        entry = self._cached_entry(symbol)

        if entry is not None and not force_refresh and is_price_fresh(entry.fetched_at, self.ttl_minutes, now):
            return MarketQuote(entry.value, True, entry.fetched_at, "cache")

        try:
            value = float(provider.fetch_latest())
            if value <= 0:
                raise PriceFeedError(f"{provider.provider_name} returned a non-positive value")
        except Exception as exc:
            if entry is not None:
                warning = f"{symbol} feed unavailable. Using cached value. Details: {exc}"
                logger.warning(warning)
                return MarketQuote(entry.value, False, entry.fetched_at, "stale_cache", warning)
            warning = f"{symbol} feed unavailable and no cached value yet. Using default. Details: {exc}"
            logger.warning(warning)
            return MarketQuote(default, False, now.isoformat(), "default", warning)

        fetched_at = now.isoformat()
        self._store(symbol, _CacheEntry(value, fetched_at, provider.provider_name))
        return MarketQuote(value, True, fetched_at, "live")

    def _cached_entry(self, symbol: str) -> Optional[_CacheEntry]:
        entry = self._cache.get(symbol)
        if entry is not None or self.conn is None:
            return entry

        try:
            row = get_cached_prices(self.conn, [symbol]).get(symbol)
        except sqlite3.Error as exc:
            logger.warning("Could not read cached %s: %s", symbol, exc)
            return None
        if row is None:
            return None

        entry = _CacheEntry(float(row["value"]), row["fetched_at"], row["provider"])
        self._cache[symbol] = entry
        return entry

    def _store(self, symbol: str, entry: _CacheEntry) -> None:
        self._cache[symbol] = entry
        if self.conn is None:
            return
        try:
            save_price(self.conn, symbol, entry.value, entry.provider, entry.fetched_at)
        except sqlite3.Error as exc:
            logger.warning("Could not persist %s: %s", symbol, exc)


def _provider_or_unconfigured(builder: Callable[[int], MarketRateProvider], timeout: int) -> MarketRateProvider:
    try:
        return builder(timeout)
    except PriceFeedError as exc:
        logger.error("Market provider misconfigured: %s", exc)
        return UnconfiguredProvider(str(exc))


def build_market_feed(conn: sqlite3.Connection) -> MarketPriceFeed:
    settings = get_all_settings(conn)
    timeout = settings["feed_timeout_seconds"]
    return MarketPriceFeed(
        _provider_or_unconfigured(build_gold_provider_from_env, timeout),
        _provider_or_unconfigured(build_rate_provider_from_env, timeout),
        ttl_minutes=settings["price_cache_ttl_minutes"],
        default_gold_price=settings["default_gold_price_inr_per_gram"],
        default_exchange_rate=settings["default_usd_inr_rate"],
        conn=conn,
    )
