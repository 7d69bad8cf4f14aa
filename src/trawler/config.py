"""
Runtime settings, read once from the environment (and a local .env file).
"""
from __future__ import annotations
import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger("trawler.config").warning(
            "ignoring %s=%r, using %s", name, raw, default)
        return default


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if not raw:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


HTTP_TIMEOUT = _float("TRAWLER_HTTP_TIMEOUT", 10)
CONNECT_TIMEOUT = _float("TRAWLER_CONNECT_TIMEOUT", 4)
EXTRACTOR_TIMEOUT = _float("TRAWLER_EXTRACTOR_TIMEOUT", 15)
BATCH_TIMEOUT = _float("TRAWLER_BATCH_TIMEOUT", 40)
KEY_TTL = _float("TRAWLER_KEY_TTL", 3600)

PROXY = os.getenv("TRAWLER_PROXY") or None
VERIFY_SSL = _flag("TRAWLER_VERIFY_SSL", True)
USER_AGENT = os.getenv("TRAWLER_USER_AGENT") or (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
LOG_LEVEL = os.getenv("TRAWLER_LOG_LEVEL", "INFO").upper()


def configure_logging(level: str | None = None):
    """Basic console logging for scripts; the library itself never installs handlers."""
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
