import sqlite3

import pandas as pd
import streamlit as st

from jewel_pricing.db import (
    STONE_CSV_COLUMNS,
    add_metal_type,
    add_stone_type,
    import_stone_types_from_df,
    list_metal_types,
    list_stone_types,
)
from jewel_pricing.models import MetalType, StoneType


def _materials_frame(materials: list, value_label: str) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "id": material.id,
                "name": material.name,
                value_label: material.price_modifier,
                "display_order": material.display_order,
                "active": material.is_active,
                "description": material.description,
            }
            for material in materials
        ]
    )


def render(conn: sqlite3.Connection) -> None:
    st.subheader("Material Catalog")
    st.caption("Catalog prices take priority over the built-in estimates.")

    tab1, tab2, tab3 = st.tabs(["Metals", "Stones", "CSV import/export"])

    with tab1:
        metals = list_metal_types(conn, include_inactive=True)
        if metals:
            st.dataframe(_materials_frame(metals, "% of 24K price"), width="stretch", hide_index=True)
        else:
            st.info("No metal types yet.")

        with st.form("add_metal_form"):
            name = st.text_input("Metal name")
            modifier = st.number_input("Price (% of 24K gold)", min_value=0.0, max_value=100.0, value=75.0)
            description = st.text_input("Description")
            submit_metal = st.form_submit_button("Add metal", type="primary")
        if submit_metal:
            if not name.strip():
                st.error("Metal name is required.")
            else:
                try:
                    add_metal_type(conn, MetalType(None, name, description, modifier, len(metals) + 1))
                    st.success("Metal added.")
                    st.rerun()
                except sqlite3.IntegrityError:
                    st.error("That metal already exists.")

    with tab2:
        stones = list_stone_types(conn, include_inactive=True)
        if stones:
            st.dataframe(_materials_frame(stones, "INR per carat"), width="stretch", hide_index=True)
        else:
            st.info("No stone types yet.")

        with st.form("add_stone_form"):
            name = st.text_input("Stone name")
            price = st.number_input("Price per carat (INR)", min_value=0.0, value=1000.0, step=100.0)
            description = st.text_input("Description")
            submit_stone = st.form_submit_button("Add stone", type="primary")
        if submit_stone:
            if not name.strip():
                st.error("Stone name is required.")
            else:
                try:
                    add_stone_type(conn, StoneType(None, name, description, price, len(stones) + 1))
                    st.success("Stone added.")
                    st.rerun()
                except sqlite3.IntegrityError:
                    st.error("That stone already exists.")

    with tab3:
        template_df = pd.DataFrame(
            [
                {
                    "name": "Tanzanite",
                    "description": "AAA grade",
                    "price_per_carat_inr": 1500,
                    "display_order": 10,
                }
            ],
            columns=STONE_CSV_COLUMNS,
        )
        st.download_button(
            "Download CSV template",
            data=template_df.to_csv(index=False).encode("utf-8"),
            file_name="stone_types_template.csv",
            mime="text/csv",
        )

        uploaded = st.file_uploader("Import stone types CSV", type=["csv"])
        if uploaded is not None:
            try:
                count = import_stone_types_from_df(conn, pd.read_csv(uploaded))
                st.success(f"Imported {count} stone types.")
            except (ValueError, KeyError, sqlite3.Error) as exc:
                st.error(f"Failed to import CSV: {exc}")

        stones = list_stone_types(conn, include_inactive=True)
        if stones:
            export_df = pd.DataFrame(
                [
                    {
                        "name": stone.name,
                        "description": stone.description,
                        "price_per_carat_inr": stone.price_modifier,
                        "display_order": stone.display_order,
                    }
                    for stone in stones
                ],
                columns=STONE_CSV_COLUMNS,
            )
            st.download_button(
                "Export stone types CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name="stone_types_export.csv",
                mime="text/csv",
            )
