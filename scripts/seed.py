"""
Initialises the local SQLite database, default settings and the starter
material catalog. Run this once before first use, or anytime to repair
missing tables.
"""

from jewel_pricing.db import get_connection, init_db, seed_default_materials


def main() -> None:
    conn = get_connection()
    init_db(conn)
    metals_added, stones_added = seed_default_materials(conn)
    print(f"Database initialised successfully ({metals_added} metals, {stones_added} stones added).")


if __name__ == "__main__":
    main()
