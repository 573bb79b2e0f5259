"""
Service configuration read from the environment (and a .env file, if any).
"""

import logging
import os

from dotenv import load_dotenv

from .rules import DEFAULT_MISSING_WEIGHT

load_dotenv()

logger = logging.getLogger(__name__)


def default_weight() -> float:
    raw = os.getenv("RUBRIC_DEFAULT_WEIGHT")
    if raw is None or not raw.strip():
        return DEFAULT_MISSING_WEIGHT
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring RUBRIC_DEFAULT_WEIGHT=%r, using %s", raw, DEFAULT_MISSING_WEIGHT)
        return DEFAULT_MISSING_WEIGHT
    if value != value:
        logger.warning("Ignoring RUBRIC_DEFAULT_WEIGHT=%r, using %s", raw, DEFAULT_MISSING_WEIGHT)
        return DEFAULT_MISSING_WEIGHT
    return min(1.0, max(0.0, value))


def log_level() -> str:
    return os.getenv("RUBRIC_LOG_LEVEL", "INFO").upper()
