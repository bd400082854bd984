from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

from jewel_pricing.catalog import SQLiteMaterialCatalog
from jewel_pricing.db import get_all_settings, get_connection, init_db, seed_default_materials
from jewel_pricing.logging_setup import setup_logging
from jewel_pricing.pricing import PriceEngine, PricingConfig
from jewel_pricing.providers.market_feed import MarketPriceFeed, build_market_feed
from jewel_pricing.ui import dashboard, materials, price_calculator, settings


# Load environment variables from local .env file.
load_dotenv(dotenv_path=Path(__file__).parent / ".env")


st.set_page_config(page_title="Jewellery Price Engine", page_icon="💍", layout="wide")


@st.cache_resource
def _get_feed(_conn) -> MarketPriceFeed:
    # One feed per process so the in-memory cache is shared across reruns.
    return build_market_feed(_conn)


def main() -> None:
    setup_logging()

    st.title("💍 Jewellery Price Engine")
    st.caption("Material-based pricing in INR and USD")

    conn = get_connection()
    init_db(conn)
    seed_default_materials(conn)

    feed = _get_feed(conn)
    engine = PriceEngine(
        SQLiteMaterialCatalog(conn),
        feed,
        PricingConfig.from_settings(get_all_settings(conn)),
    )

    page = st.sidebar.radio(
        "Navigate",
        [
            "Price Calculator",
            "Dashboard",
            "Material Catalog",
            "Settings",
        ],
    )

    if page == "Price Calculator":
        price_calculator.render(conn, engine)
    elif page == "Dashboard":
        dashboard.render(feed)
    elif page == "Material Catalog":
        materials.render(conn)
    elif page == "Settings":
        settings.render(conn)


if __name__ == "__main__":
    main()
