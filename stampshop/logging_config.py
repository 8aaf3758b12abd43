"""Shared logger for the storefront."""
from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure root logging once and return the application logger."""
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
    return logging.getLogger("stampshop")


logger = logging.getLogger("stampshop")
