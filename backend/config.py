"""
Runtime settings for the page quality API.

Values are read from a .env file in the backend root (python-dotenv) and
then from the process environment. Optional integrations:

GOOGLE_PAGESPEED_API_KEY=...   enables the PageSpeed metrics provider
ANTHROPIC_API_KEY=...          enables LLM recommendation enhancement
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() not in {"0", "false", "no", "off", ""}


APP_ENV = os.getenv("APP_ENV", "production").strip().lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

DB_PATH = Path(os.getenv("DB_PATH", str(Path(__file__).parent / "pagequality.db")))

# Page fetch
PAGE_FETCH_TIMEOUT_SECONDS = float(os.getenv("PAGE_FETCH_TIMEOUT_SECONDS", "30"))
MAX_HTML_BYTES = int(os.getenv("MAX_HTML_BYTES", "800000"))
MAX_BODY_CHARS_FAST = int(os.getenv("MAX_BODY_CHARS_FAST", "150000"))
MAX_BODY_CHARS_FULL = int(os.getenv("MAX_BODY_CHARS_FULL", "300000"))

# Content gate
MIN_CONTENT_WORDS = int(os.getenv("MIN_CONTENT_WORDS", "100"))
STRICT_NON_ARTICLE_MIN_WORDS = int(os.getenv("STRICT_NON_ARTICLE_MIN_WORDS", "300"))

# Uniqueness
DATAMUSE_URL = os.getenv("DATAMUSE_URL", "https://api.datamuse.com/words")
WORD_FREQUENCY_TIMEOUT_SECONDS = float(os.getenv("WORD_FREQUENCY_TIMEOUT_SECONDS", "3"))
KEYWORD_CACHE_MAX_AGE_DAYS = int(os.getenv("KEYWORD_CACHE_MAX_AGE_DAYS", "30"))

# Performance providers
GOOGLE_PAGESPEED_API_KEY = os.getenv("GOOGLE_PAGESPEED_API_KEY", "").strip()
PAGESPEED_TIMEOUT_SECONDS = float(os.getenv("PAGESPEED_TIMEOUT_SECONDS", "20"))
BROWSER_METRICS_ENABLED = _env_flag("BROWSER_METRICS_ENABLED")
BROWSER_TIMEOUT_SECONDS = float(os.getenv("BROWSER_TIMEOUT_SECONDS", "30"))

# Auxiliary site checks
SITE_PROBE_TIMEOUT_SECONDS = float(os.getenv("SITE_PROBE_TIMEOUT_SECONDS", "2"))
LINK_CHECK_TIMEOUT_SECONDS = float(os.getenv("LINK_CHECK_TIMEOUT_SECONDS", "1.5"))
MAX_EXTERNAL_LINK_CHECKS = int(os.getenv("MAX_EXTERNAL_LINK_CHECKS", "5"))

# Analysis output
ANALYSIS_CACHE_TTL_SECONDS = float(os.getenv("ANALYSIS_CACHE_TTL_SECONDS", "600"))
ANALYSIS_CACHE_MAX_ENTRIES = int(os.getenv("ANALYSIS_CACHE_MAX_ENTRIES", "500"))
MAX_RECOMMENDATIONS = int(os.getenv("MAX_RECOMMENDATIONS", "12"))


def is_development() -> bool:
    return APP_ENV == "development"


def configure_logging() -> None:
    """Install a root handler once; later calls are no-ops."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
