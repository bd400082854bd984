import logging
from datetime import datetime, timezone

import pandas as pd
import pytest

from jewel_pricing.db import (
    DEFAULT_METAL_TYPES,
    DEFAULT_STONE_TYPES,
    get_all_settings,
    get_connection,
    import_stone_types_from_df,
    init_db,
    is_price_fresh,
    list_metal_types,
    list_stone_types,
    save_settings,
    seed_default_materials,
)
from jewel_pricing.logging_setup import setup_logging


def test_default_settings(conn):
    settings = get_all_settings(conn)
    assert settings == {
        "default_gold_price_inr_per_gram": 9800.0,
        "default_usd_inr_rate": 83.0,
        "quick_estimate_usd_inr_rate": 83.5,
        "price_cache_ttl_minutes": 15,
        "feed_timeout_seconds": 10,
    }


def test_save_settings_round_trip(conn):
    save_settings(conn, {"default_usd_inr_rate": 84.25, "price_cache_ttl_minutes": 30, "unknown": 1})
    settings = get_all_settings(conn)
    assert settings["default_usd_inr_rate"] == 84.25
    assert settings["price_cache_ttl_minutes"] == 30
    assert settings["default_gold_price_inr_per_gram"] == 9800.0


def test_bad_setting_value_falls_back_to_default(conn):
    conn.execute("UPDATE settings SET value = 'abc' WHERE key = 'default_gold_price_inr_per_gram'")
    assert get_all_settings(conn)["default_gold_price_inr_per_gram"] == 9800.0


def test_init_db_is_repeatable(conn):
    save_settings(conn, {"feed_timeout_seconds": 5})
    init_db(conn)
    assert get_all_settings(conn)["feed_timeout_seconds"] == 5


def test_seed_default_materials_only_fills_empty_tables(conn):
    assert seed_default_materials(conn) == (len(DEFAULT_METAL_TYPES), len(DEFAULT_STONE_TYPES))
    assert seed_default_materials(conn) == (0, 0)
    assert [metal.name for metal in list_metal_types(conn)][0] == "24K Gold"


def test_seeded_metal_names(conn):
    seed_default_materials(conn)

    assert [metal.name for metal in list_metal_types(conn)] == [
        "24K Gold",
        "22K Gold",
        "18K Yellow Gold",
        "18K White Gold",
        "18K Rose Gold",
        "14K Gold",
        "Sterling Silver",
        "Commercial Metal",
    ]


def test_import_stone_types_updates_existing(conn):
    seed_default_materials(conn)
    df = pd.DataFrame(
        [
            {"name": "ruby", "description": "Burmese", "price_per_carat_inr": 4200, "display_order": 5},
            {"name": "Garnet", "description": None, "price_per_carat_inr": 800, "display_order": None},
        ]
    )

    assert import_stone_types_from_df(conn, df) == 2

    stones = {stone.name: stone for stone in list_stone_types(conn)}
    assert stones["ruby"].price_modifier == 4200
    assert "Ruby" not in stones
    assert stones["Garnet"].description == ""
    assert stones["Garnet"].display_order == 0


def test_import_stone_types_requires_columns(conn):
    with pytest.raises(ValueError, match="price_per_carat_inr"):
        import_stone_types_from_df(conn, pd.DataFrame([{"name": "Ruby"}]))


def test_is_price_fresh():
    now = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert is_price_fresh("2025-03-01T11:50:00+00:00", 15, now)
    assert is_price_fresh("2025-03-01T11:50:00", 15, now)
    assert not is_price_fresh("2025-03-01T11:40:00+00:00", 15, now)
    assert not is_price_fresh("yesterday", 15, now)


def test_get_connection_creates_file(tmp_path):
    path = tmp_path / "nested" / "pricing.db"
    conn = get_connection(path)
    init_db(conn)
    conn.close()
    assert path.exists()


def test_setup_logging_writes_rotating_file(tmp_path):
    root = logging.getLogger()
    previous_handlers, previous_level = root.handlers[:], root.level
    try:
        setup_logging(level="debug", log_dir=tmp_path)
        logging.getLogger("jewel_pricing.test").debug("hello")
        for handler in root.handlers:
            handler.flush()
        assert root.level == logging.DEBUG
        assert "hello" in (tmp_path / "jewel_pricing.log").read_text()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = previous_handlers
        root.setLevel(previous_level)
