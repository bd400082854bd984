import os
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from jewel_pricing.models import MetalType, StoneType

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DB_PATH = DATA_DIR / "pricing.db"

DEFAULT_SETTINGS: dict[str, str] = {
    "default_gold_price_inr_per_gram": "9800",
    "default_usd_inr_rate": "83",
    "quick_estimate_usd_inr_rate": "83.5",
    "price_cache_ttl_minutes": "15",
    "feed_timeout_seconds": "10",
}

# (name, description, price_modifier as % of 24K, display_order)
DEFAULT_METAL_TYPES: list[tuple[str, str, float, int]] = [
    ("24K Gold", "Pure gold", 100, 1),
    ("22K Gold", "Traditional Indian jewellery gold", 91, 2),
    ("18K Yellow Gold", "Fine jewellery standard", 75, 3),
    ("18K White Gold", "Rhodium plated 18K", 75, 4),
    ("18K Rose Gold", "Copper rich 18K", 75, 5),
    ("14K Gold", "Durable everyday gold", 58, 6),
    ("Sterling Silver", "925 silver, priced as a fraction of 24K gold", 1.2, 7),
    ("Commercial Metal", "Brass / alloy base, priced as zero metal cost", 0, 8),
]

# (name, description, price per carat in INR, display_order)
DEFAULT_STONE_TYPES: list[tuple[str, str, float, int]] = [
    ("Natural Diamond", "Mined diamond", 56000, 1),
    ("Lab Grown Diamond", "CVD / HPHT diamond", 20000, 2),
    ("Natural Polki", "Uncut natural diamond", 15000, 3),
    ("Lab Polki", "Uncut lab diamond", 7000, 4),
    ("Ruby", "Natural ruby", 3000, 5),
    ("Emerald", "Natural emerald", 3500, 6),
    ("Blue Sapphire", "Natural blue sapphire", 3000, 7),
    ("Pearl", "Freshwater pearl", 100, 8),
    ("CZ", "Cubic zirconia", 1000, 9),
]

STONE_CSV_COLUMNS = ["name", "description", "price_per_carat_inr", "display_order"]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_db_path() -> Path:
    override = os.getenv("JEWEL_PRICING_DB", "").strip()
    return Path(override) if override else DB_PATH


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    if db_path == ":memory:":
        conn = sqlite3.connect(":memory:", check_same_thread=False)
    else:
        target = Path(db_path) if db_path else get_db_path()
        target.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(target, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    cursor = conn.cursor()

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS market_prices (
            symbol TEXT PRIMARY KEY,
            value REAL NOT NULL,
            fetched_at TEXT NOT NULL,
            provider TEXT NOT NULL
        )
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS metal_types (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            description TEXT,
            price_modifier REAL NOT NULL DEFAULT 1.0,
            display_order INTEGER NOT NULL DEFAULT 0,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        )
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS stone_types (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            description TEXT,
            price_modifier REAL NOT NULL DEFAULT 1.0,
            display_order INTEGER NOT NULL DEFAULT 0,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        )
        """
    )

    for key, value in DEFAULT_SETTINGS.items():
        cursor.execute(
            """
            INSERT OR IGNORE INTO settings (key, value, updated_at)
            VALUES (?, ?, ?)
            """,
            (key, value, utc_now_iso()),
        )

    conn.commit()


def seed_default_materials(conn: sqlite3.Connection) -> tuple[int, int]:
    """Inserts the starter catalog into empty tables. Returns (metals, stones) added."""
    metals_added = 0
    stones_added = 0

    if not list_metal_types(conn, include_inactive=True):
        for name, description, modifier, order in DEFAULT_METAL_TYPES:
            add_metal_type(conn, MetalType(None, name, description, modifier, order))
            metals_added += 1

    if not list_stone_types(conn, include_inactive=True):
        for name, description, price, order in DEFAULT_STONE_TYPES:
            add_stone_type(conn, StoneType(None, name, description, price, order))
            stones_added += 1

    return metals_added, stones_added


def get_all_settings(conn: sqlite3.Connection) -> dict[str, Any]:
    rows = conn.execute("SELECT key, value FROM settings").fetchall()
    raw = {row["key"]: row["value"] for row in rows}

    def get_float(key: str) -> float:
        try:
            return float(raw.get(key, DEFAULT_SETTINGS[key]))
        except (TypeError, ValueError):
            return float(DEFAULT_SETTINGS[key])

    return {
        "default_gold_price_inr_per_gram": get_float("default_gold_price_inr_per_gram"),
        "default_usd_inr_rate": get_float("default_usd_inr_rate"),
        "quick_estimate_usd_inr_rate": get_float("quick_estimate_usd_inr_rate"),
        "price_cache_ttl_minutes": int(get_float("price_cache_ttl_minutes")),
        "feed_timeout_seconds": int(get_float("feed_timeout_seconds")),
    }


def save_settings(conn: sqlite3.Connection, settings: dict[str, Any]) -> None:
    now = utc_now_iso()
    payload = {key: str(settings[key]) for key in DEFAULT_SETTINGS if key in settings}

    for key, value in payload.items():
        conn.execute(
            """
            INSERT INTO settings (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (key, value, now),
        )
    conn.commit()


def get_cached_prices(conn: sqlite3.Connection, symbols: list[str]) -> dict[str, sqlite3.Row]:
    placeholders = ",".join("?" for _ in symbols)
    rows = conn.execute(
        f"SELECT symbol, value, fetched_at, provider FROM market_prices WHERE symbol IN ({placeholders})",
        symbols,
    ).fetchall()
    return {row["symbol"]: row for row in rows}


def save_price(
    conn: sqlite3.Connection,
    symbol: str,
    value: float,
    provider: str,
    fetched_at: str | None = None,
) -> None:
    conn.execute(
        """
        INSERT INTO market_prices (symbol, value, fetched_at, provider)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(symbol)
        DO UPDATE SET
            value = excluded.value,
            fetched_at = excluded.fetched_at,
            provider = excluded.provider
        """,
        (symbol, value, fetched_at or utc_now_iso(), provider),
    )
    conn.commit()


def is_price_fresh(fetched_at_iso: str, max_age_minutes: int, now: datetime | None = None) -> bool:
    try:
        fetched_at = datetime.fromisoformat(fetched_at_iso)
    except ValueError:
        return False
    if fetched_at.tzinfo is None:
        fetched_at = fetched_at.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)
    return current - fetched_at <= timedelta(minutes=max_age_minutes)


def _row_to_metal(row: sqlite3.Row) -> MetalType:
    return MetalType(
        id=int(row["id"]),
        name=row["name"],
        description=row["description"] or "",
        price_modifier=float(row["price_modifier"]),
        display_order=int(row["display_order"]),
        is_active=bool(row["is_active"]),
    )


def _row_to_stone(row: sqlite3.Row) -> StoneType:
    return StoneType(
        id=int(row["id"]),
        name=row["name"],
        description=row["description"] or "",
        price_modifier=float(row["price_modifier"]),
        display_order=int(row["display_order"]),
        is_active=bool(row["is_active"]),
    )


def list_metal_types(conn: sqlite3.Connection, include_inactive: bool = False) -> list[MetalType]:
    query = "SELECT * FROM metal_types"
    if not include_inactive:
        query += " WHERE is_active = 1"
    rows = conn.execute(query + " ORDER BY display_order, id").fetchall()
    return [_row_to_metal(row) for row in rows]


def get_metal_type(conn: sqlite3.Connection, metal_type_id: int) -> MetalType | None:
    row = conn.execute("SELECT * FROM metal_types WHERE id = ?", (metal_type_id,)).fetchone()
    return _row_to_metal(row) if row is not None else None


def add_metal_type(conn: sqlite3.Connection, metal: MetalType) -> int:
    cursor = conn.execute(
        """
        INSERT INTO metal_types (name, description, price_modifier, display_order, is_active, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            metal.name.strip(),
            metal.description,
            metal.price_modifier,
            metal.display_order,
            1 if metal.is_active else 0,
            utc_now_iso(),
        ),
    )
    conn.commit()
    return int(cursor.lastrowid)


def list_stone_types(conn: sqlite3.Connection, include_inactive: bool = False) -> list[StoneType]:
    query = "SELECT * FROM stone_types"
    if not include_inactive:
        query += " WHERE is_active = 1"
    rows = conn.execute(query + " ORDER BY display_order, id").fetchall()
    return [_row_to_stone(row) for row in rows]


def get_stone_type(conn: sqlite3.Connection, stone_type_id: int) -> StoneType | None:
    row = conn.execute("SELECT * FROM stone_types WHERE id = ?", (stone_type_id,)).fetchone()
    return _row_to_stone(row) if row is not None else None


def add_stone_type(conn: sqlite3.Connection, stone: StoneType) -> int:
    cursor = conn.execute(
        """
        INSERT INTO stone_types (name, description, price_modifier, display_order, is_active, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            stone.name.strip(),
            stone.description,
            stone.price_modifier,
            stone.display_order,
            1 if stone.is_active else 0,
            utc_now_iso(),
        ),
    )
    conn.commit()
    return int(cursor.lastrowid)


def update_stone_type(conn: sqlite3.Connection, stone_type_id: int, stone: StoneType) -> None:
    conn.execute(
        """
        UPDATE stone_types
        SET name = ?, description = ?, price_modifier = ?, display_order = ?, is_active = ?
        WHERE id = ?
        """,
        (
            stone.name.strip(),
            stone.description,
            stone.price_modifier,
            stone.display_order,
            1 if stone.is_active else 0,
            stone_type_id,
        ),
    )
    conn.commit()


def delete_stone_type(conn: sqlite3.Connection, stone_type_id: int) -> None:
    conn.execute("DELETE FROM stone_types WHERE id = ?", (stone_type_id,))
    conn.commit()


def import_stone_types_from_df(conn: sqlite3.Connection, df: Any) -> int:
    import pandas as pd

    missing = [column for column in STONE_CSV_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(missing)}")

    existing = {stone.name.lower(): stone for stone in list_stone_types(conn, include_inactive=True)}
    imported = 0
    for _, row in df.iterrows():
        stone = StoneType(
            id=None,
            name=str(row["name"]).strip(),
            description="" if pd.isna(row["description"]) else str(row["description"]),
            price_modifier=float(row["price_per_carat_inr"]),
            display_order=0 if pd.isna(row["display_order"]) else int(row["display_order"]),
        )
        current = existing.get(stone.name.lower())
        if current is not None and current.id is not None:
            update_stone_type(conn, current.id, stone)
        else:
            add_stone_type(conn, stone)
        imported += 1
    return imported
