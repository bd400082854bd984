import sqlite3

import streamlit as st

from jewel_pricing.db import get_all_settings, save_settings


def render(conn: sqlite3.Connection) -> None:
    st.subheader("Settings")

    current = get_all_settings(conn)

    with st.form("settings_form"):
        col1, col2 = st.columns(2)
        with col1:
            default_gold = st.number_input(
                "Fallback 24K gold price (INR/gram)",
                min_value=1.0,
                value=float(current["default_gold_price_inr_per_gram"]),
                step=50.0,
                help="Used when the gold feed fails and nothing is cached.",
            )
            default_rate = st.number_input(
                "Fallback USD to INR rate",
                min_value=1.0,
                value=float(current["default_usd_inr_rate"]),
                step=0.1,
                help="Used when the exchange rate feed fails and nothing is cached.",
            )
            quick_rate = st.number_input(
                "Quick estimate USD to INR rate",
                min_value=1.0,
                value=float(current["quick_estimate_usd_inr_rate"]),
                step=0.1,
            )

        with col2:
            cache_ttl = st.number_input(
                "Market price cache age (minutes)",
                min_value=1,
                max_value=1440,
                value=int(current["price_cache_ttl_minutes"]),
                step=1,
            )
            timeout = st.number_input(
                "Feed request timeout (seconds)",
                min_value=1,
                max_value=60,
                value=int(current["feed_timeout_seconds"]),
                step=1,
            )

        submitted = st.form_submit_button("Save settings", type="primary")

    if submitted:
        save_settings(
            conn,
            {
                "default_gold_price_inr_per_gram": default_gold,
                "default_usd_inr_rate": default_rate,
                "quick_estimate_usd_inr_rate": quick_rate,
                "price_cache_ttl_minutes": cache_ttl,
                "feed_timeout_seconds": timeout,
            },
        )
        st.success("Settings saved.")
