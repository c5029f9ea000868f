"""Paths, defaults and logging setup, overridable through the environment."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_ROOT.parent.parent
DATA_DIR = Path(os.environ.get("PROGRESSION_DATA_DIR", PROJECT_ROOT / "data"))
CATALOG_PATH = Path(os.environ.get("PROGRESSION_CATALOG_PATH", DATA_DIR / "cards.yaml"))
DB_PATH = Path(os.environ.get("PROGRESSION_DB_PATH", DATA_DIR / "progression.db"))

DEFAULT_DAILY_GOAL_XP = 10
DEFAULT_TIMEZONE = "UTC"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _parse_level(level: str) -> int:
    return logging.getLevelNamesMapping().get((level or "INFO").upper(), logging.INFO)


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach a stream handler to the package logger.

    Idempotent: safe to call multiple times. ``LOG_LEVEL`` wins over the
    argument when set.
    """

    logger = logging.getLogger("progression_engine")
    if getattr(logger, "_configured", False):
        return logger

    numeric_level = _parse_level(os.getenv("LOG_LEVEL", level or "INFO"))
    logger.setLevel(numeric_level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(handler)

    logger._configured = True  # type: ignore[attr-defined]
    return logger


__all__ = [
    "CATALOG_PATH",
    "configure_logging",
    "DATA_DIR",
    "DB_PATH",
    "DEFAULT_DAILY_GOAL_XP",
    "DEFAULT_TIMEZONE",
]
