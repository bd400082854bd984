from datetime import UTC, datetime

import pandas as pd
import streamlit as st

from jewel_pricing.models import MarketQuote
from jewel_pricing.providers.market_feed import MarketPriceFeed

SOURCE_LABELS = {
    "live": "Live",
    "cache": "Cached (fresh)",
    "stale_cache": "Cached (stale)",
    "default": "Default",
}


def _format_gmt_timestamp(timestamp_iso: str) -> str:
    try:
        parsed = datetime.fromisoformat(timestamp_iso)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC).strftime("%Y-%m-%d %H:%M:%S GMT")
    except ValueError:
        return timestamp_iso


def _quote_row(label: str, quote: MarketQuote, unit: str) -> dict[str, str]:
    return {
        "Market": label,
        "Value": f"{quote.value:,.2f} {unit}",
        "Source": SOURCE_LABELS.get(quote.source, quote.source),
        "As of (GMT)": _format_gmt_timestamp(quote.timestamp),
    }


def render(feed: MarketPriceFeed) -> None:
    st.subheader("Dashboard")
    st.caption("Market rates used by the price calculator")

    refresh_now = st.button("Refresh rates now", type="primary")
    gold = feed.get_gold_price_per_gram(force_refresh=refresh_now)
    rate = feed.get_exchange_rate(force_refresh=refresh_now)

    for quote in (gold, rate):
        if quote.warning:
            st.warning(quote.warning)

    df = pd.DataFrame(
        [
            _quote_row("24K gold", gold, "INR/g"),
            _quote_row("USD to INR", rate, "INR"),
        ]
    )
    st.dataframe(df, width="stretch", hide_index=True)

    st.info(
        "If a feed fails, the last cached value is used, then the fallback from Settings. "
        "Set cache age in Settings."
    )
