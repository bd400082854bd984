import os
import time
from typing import Any, Callable

import requests

from jewel_pricing.providers.base import (
    DEFAULT_TIMEOUT_SECONDS,
    MarketRateProvider,
    PriceFeedError,
    build_retry_session,
)

TROY_OZ_TO_GRAMS = 31.1034768
GOLD_SYMBOL = "XAU"
QUOTE_CURRENCY = "INR"


def per_oz_to_per_gram(price_per_oz: float) -> float:
    return price_per_oz / TROY_OZ_TO_GRAMS


class MetalPriceAPIProvider(MarketRateProvider):
    """
    24K gold in INR per gram from metalpriceapi.com.

    With base=INR the endpoint returns troy ounces of gold per rupee, so the
    rate is inverted before the ounce-to-gram conversion.
    """

    provider_name = "metalpriceapi"
    endpoint = "https://api.metalpriceapi.com/v1/latest"

    def __init__(self, api_key: str | None = None, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS):
        self.api_key = api_key or os.getenv("METALPRICEAPI_KEY", "")
        self.timeout_seconds = timeout_seconds

    def fetch_latest(self) -> float:
        if not self.api_key:
            raise PriceFeedError("Missing METALPRICEAPI_KEY in .env")

        try:
            response = requests.get(
                self.endpoint,
                params={
                    "api_key": self.api_key,
                    "base": QUOTE_CURRENCY,
                    "currencies": GOLD_SYMBOL,
                },
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            payload: dict[str, Any] = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise PriceFeedError(f"metalpriceapi request failed: {exc}") from exc

        if payload.get("success") is False:
            raise PriceFeedError(str(payload.get("error", "Provider returned unsuccessful response")))

        rate = payload.get("rates", {}).get(GOLD_SYMBOL)
        if rate is None:
            raise PriceFeedError(f"Missing {GOLD_SYMBOL} rate from metalpriceapi")
        if float(rate) <= 0:
            raise PriceFeedError(f"Invalid {GOLD_SYMBOL} rate from provider")

        return per_oz_to_per_gram(1 / float(rate))


class GoldAPIProvider(MarketRateProvider):
    """
    24K gold in INR per gram from gold-api.com.

    Expected endpoint pattern:
    GET https://api.gold-api.com/price/XAU/INR

    The response carries a numeric `price` per troy ounce. A currency field
    other than INR is rejected to avoid silent mispricing.

    The timeout is one budget shared by the primary and fallback URLs.
    """

    provider_name = "goldapi"
    endpoint_base = "https://api.gold-api.com/price"

    def __init__(
        self,
        api_key: str | None = None,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api_key = api_key or os.getenv("GOLDAPI_KEY", "")
        self.timeout_seconds = timeout_seconds
        self.clock = clock
        override_base = os.getenv("GOLDAPI_BASE_URL", "").strip()
        base_urls = [override_base] if override_base else [self.endpoint_base]

        fallback_raw = os.getenv("GOLDAPI_FALLBACK_BASE_URLS", "").strip()
        if fallback_raw:
            base_urls.extend(url.strip() for url in fallback_raw.split(",") if url.strip())

        self.base_urls: list[str] = []
        for base_url in base_urls:
            cleaned = base_url.rstrip("/")
            if cleaned and cleaned not in self.base_urls:
                self.base_urls.append(cleaned)

        self.session = session or build_retry_session()

    def fetch_latest(self) -> float:
        headers: dict[str, str] = {}
        if self.api_key:
            headers["x-access-token"] = self.api_key

        payload: dict[str, Any] | None = None
        last_error: Exception | None = None
        deadline = self.clock() + self.timeout_seconds
        for base_url in self.base_urls:
            remaining = deadline - self.clock()
            if remaining <= 0:
                last_error = PriceFeedError(f"no time left for {base_url}")
                break
            try:
                response = self.session.get(
                    f"{base_url}/{GOLD_SYMBOL}/{QUOTE_CURRENCY}",
                    headers=headers,
                    timeout=remaining,
                )
                response.raise_for_status()
                payload = response.json()
                break
            except (requests.RequestException, ValueError) as exc:
                last_error = exc

        if payload is None:
            raise PriceFeedError(
                f"Gold API request failed across configured URLs. Last error: {last_error}"
            )

        if "price" not in payload:
            raise PriceFeedError("Missing price field from Gold API")

        currency = str(payload.get("currency", QUOTE_CURRENCY)).upper()
        if currency != QUOTE_CURRENCY:
            raise PriceFeedError(f"Gold API returned {currency}. Expected {QUOTE_CURRENCY} pricing.")

        price_per_oz = float(payload["price"])
        if price_per_oz <= 0:
            raise PriceFeedError("Invalid gold price from Gold API")

        return per_oz_to_per_gram(price_per_oz)


def build_gold_provider_from_env(timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS) -> MarketRateProvider:
    provider_name = os.getenv("GOLD_PRICE_PROVIDER", "goldapi").strip().lower()
    if provider_name == "metalpriceapi":
        return MetalPriceAPIProvider(timeout_seconds=timeout_seconds)
    if provider_name == "goldapi":
        return GoldAPIProvider(timeout_seconds=timeout_seconds)
    raise PriceFeedError("Unsupported GOLD_PRICE_PROVIDER. Use 'goldapi' or 'metalpriceapi'.")
