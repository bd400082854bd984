import sqlite3

import pandas as pd
import streamlit as st

from jewel_pricing.db import list_metal_types, list_stone_types
from jewel_pricing.models import GemInput, PricingRequest
from jewel_pricing.pricing import SAMPLE_REQUEST, PriceEngine, describe_breakdown

PRODUCT_TYPES = ["Necklace", "Choker", "Bracelet", "Bangle", "Earrings", "Pendant", "Ring"]
CUSTOM_ENTRY = "Other (type a name)"
NO_STONE = "None"


def _format_inr(value: float) -> str:
    return f"₹{value:,.0f}"


def _format_usd(value: float) -> str:
    return f"${value:,.0f}"


def _stone_picker(label: str, key: str, stone_options: dict[str, int | None], default_carats: float) -> GemInput | None:
    col1, col2 = st.columns([3, 1])
    with col1:
        choice = st.selectbox(label, options=list(stone_options), key=f"{key}_type")
        custom_name = ""
        if choice == CUSTOM_ENTRY:
            custom_name = st.text_input(f"{label} name", key=f"{key}_name")
    with col2:
        carats = st.number_input(
            "Carats (0 = assume)",
            min_value=0.0,
            value=default_carats,
            step=0.05,
            key=f"{key}_carats",
        )

    if choice == NO_STONE:
        return None
    name = custom_name.strip() if choice == CUSTOM_ENTRY else choice
    if not name:
        return None
    return GemInput(name=name, carats=carats or None, stone_type_id=stone_options.get(choice))


def render(conn: sqlite3.Connection, engine: PriceEngine) -> None:
    st.subheader("Price Calculator")
    st.caption("Metal weight × 24K gold price × karat, plus stones per carat, plus 25% overhead.")

    metals = list_metal_types(conn)
    stones = list_stone_types(conn)
    metal_options: dict[str, int | None] = {metal.name: metal.id for metal in metals}
    metal_options[CUSTOM_ENTRY] = None
    stone_options: dict[str, int | None] = {NO_STONE: None}
    stone_options.update({stone.name: stone.id for stone in stones})
    stone_options[CUSTOM_ENTRY] = None

    col1, col2, col3 = st.columns(3)
    with col1:
        product_type = st.selectbox("Product type", options=PRODUCT_TYPES)
    with col2:
        metal_choice = st.selectbox("Metal", options=list(metal_options))
        metal_name = metal_choice
        if metal_choice == CUSTOM_ENTRY:
            metal_name = st.text_input("Metal name", value=SAMPLE_REQUEST.metal_type)
    with col3:
        weight = st.number_input(
            "Metal weight (grams)",
            min_value=0.0,
            value=float(SAMPLE_REQUEST.metal_weight_grams),
            step=0.5,
        )

    st.markdown("### Stones")
    primary = _stone_picker("Primary stone", "primary", stone_options, 1.0)
    secondary_count = st.number_input("Secondary stones", min_value=0, max_value=6, value=0, step=1)
    gems = [primary] if primary is not None else []
    for index in range(int(secondary_count)):
        gem = _stone_picker(f"Secondary stone {index + 1}", f"secondary_{index}", stone_options, 0.5)
        if gem is not None:
            gems.append(gem)
    other_stone = _stone_picker("Other stone", "other", stone_options, 0.25)

    request = PricingRequest(
        product_type=product_type,
        metal_type=metal_name,
        metal_weight_grams=weight,
        metal_type_id=metal_options.get(metal_choice),
        primary_gems=tuple(gems),
        other_stone=other_stone,
    )

    if not st.button("Calculate price", type="primary"):
        return

    breakdown = engine.calculate(request)
    quick = engine.quick_estimate(request)

    if breakdown.is_emergency_fallback:
        st.error("Materials could not be priced. Showing the standard fallback price.")
    elif not (breakdown.gold_price_is_live and breakdown.exchange_rate_is_live):
        st.warning("Cached or default market rates were used for this price.")
    if breakdown.metal_modifier_defaulted:
        st.info("Metal not recognised; priced as 18K gold.")

    r1, r2, r3, r4 = st.columns(4)
    r1.metric("Metal cost", _format_inr(breakdown.metal_cost))
    r2.metric("Stone cost", _format_inr(breakdown.stone_cost))
    r3.metric("Overhead (25%)", _format_inr(breakdown.overhead))
    r4.metric("Total", _format_inr(breakdown.total_inr), _format_usd(breakdown.total_usd))

    if breakdown.per_gem_cost:
        df = pd.DataFrame(
            [
                {
                    "Stone": line.name + (" (other)" if line.is_other_stone else ""),
                    "Carats": line.carats,
                    "Assumed carats": line.carats_defaulted,
                    "INR per carat": line.unit_price,
                    "Subtotal (INR)": line.subtotal,
                    "Priced from": line.source,
                }
                for line in breakdown.per_gem_cost
            ]
        )
        st.dataframe(df, width="stretch", hide_index=True)

    with st.expander("How this price was worked out"):
        st.code(describe_breakdown(request, breakdown), language=None)

    st.divider()
    st.markdown("### Quick market estimate")
    st.caption("Catalog-free estimate used for product copy. Not an authoritative price.")
    q1, q2 = st.columns(2)
    q1.metric("Estimate (USD)", _format_usd(quick.price_usd))
    q2.metric("Estimate (INR)", _format_inr(quick.price_inr))
