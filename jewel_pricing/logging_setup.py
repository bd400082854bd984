"""
Root logger configuration: console output plus a rotating log file.

The file handler writes to logs/jewel_pricing.log and rolls over at 5 MB,
keeping three backups.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_DIR = Path(__file__).resolve().parents[1] / "logs"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(level: str | None = None, log_dir: Path | None = None) -> None:
    target_dir = log_dir or LOG_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    level_name = (level or os.getenv("JEWEL_PRICING_LOG_LEVEL", "INFO")).upper()

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(target_dir / "jewel_pricing.log", maxBytes=5_000_000, backupCount=3)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    # Replaces handlers installed by a previous Streamlit rerun.
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        handlers=[file_handler, console_handler],
        format=LOG_FORMAT,
        force=True,
    )
