import os
import re
from typing import Any

import requests
from bs4 import BeautifulSoup

from jewel_pricing.providers.base import (
    DEFAULT_TIMEOUT_SECONDS,
    MarketRateProvider,
    PriceFeedError,
    build_retry_session,
)

MIN_PLAUSIBLE_USD_INR = 50.0
MAX_PLAUSIBLE_USD_INR = 100.0

_RATE_IN_TEXT = re.compile(r"\d+(?:\.\d+)?")
_RATE_BEFORE_INR = re.compile(r"([0-9]+(?:\.[0-9]+)?)\s*INR", re.IGNORECASE)


def validate_usd_inr_rate(rate: float) -> float:
    if not MIN_PLAUSIBLE_USD_INR <= rate <= MAX_PLAUSIBLE_USD_INR:
        raise PriceFeedError(f"USD to INR rate {rate} is outside the plausible range")
    return rate


class ExchangeRateAPIProvider(MarketRateProvider):
    """INR per USD from the open.er-api.com latest-rates endpoint."""

    provider_name = "exchangerateapi"
    endpoint = "https://open.er-api.com/v6/latest/USD"

    def __init__(
        self,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.session = session or build_retry_session()

    def fetch_latest(self) -> float:
        try:
            response = self.session.get(self.endpoint, timeout=self.timeout_seconds)
            response.raise_for_status()
            payload: dict[str, Any] = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise PriceFeedError(f"Exchange rate request failed: {exc}") from exc

        if payload.get("result") not in (None, "success"):
            raise PriceFeedError(str(payload.get("error-type", "Provider returned unsuccessful response")))

        rate = payload.get("rates", {}).get("INR")
        if rate is None:
            raise PriceFeedError("Missing INR rate from exchange rate provider")
        return validate_usd_inr_rate(float(rate))


class XoomRateProvider(MarketRateProvider):
    """
    INR per USD scraped from the Xoom India send-money page.

    The page is tried for a `data-v-exchange-rate` element first, then for any
    number directly followed by "INR".
    """

    provider_name = "xoom"
    endpoint = "https://www.xoom.com/india/send-money"
    headers = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Cache-Control": "no-cache",
    }

    def __init__(
        self,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.session = session or build_retry_session()

    def fetch_latest(self) -> float:
        try:
            response = self.session.get(self.endpoint, headers=self.headers, timeout=self.timeout_seconds)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise PriceFeedError(f"Xoom request failed: {exc}") from exc

        rate = parse_xoom_rate(response.text)
        if rate is None:
            raise PriceFeedError("Could not find a USD to INR rate on the Xoom page")
        return validate_usd_inr_rate(rate)


def parse_xoom_rate(html: str) -> float | None:
    soup = BeautifulSoup(html, "html.parser")
    element = soup.select_one("[data-v-exchange-rate]")
    if element is not None:
        text = element.get_text(" ", strip=True)
        match = _RATE_BEFORE_INR.search(text)
        if match:
            return float(match.group(1))
        match = _RATE_IN_TEXT.search(text)
        if match:
            return float(match.group(0))

    match = _RATE_BEFORE_INR.search(html)
    if match:
        return float(match.group(1))
    return None


def build_rate_provider_from_env(timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS) -> MarketRateProvider:
    provider_name = os.getenv("EXCHANGE_RATE_PROVIDER", "exchangerateapi").strip().lower()
    if provider_name == "exchangerateapi":
        return ExchangeRateAPIProvider(timeout_seconds=timeout_seconds)
    if provider_name == "xoom":
        return XoomRateProvider(timeout_seconds=timeout_seconds)
    raise PriceFeedError("Unsupported EXCHANGE_RATE_PROVIDER. Use 'exchangerateapi' or 'xoom'.")
