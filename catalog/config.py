"""Environment variable loading and configuration."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")


def get_env(key: str, default: str | None = None) -> str:
    """Get an environment variable or raise if missing and no default."""
    value = os.getenv(key, default)
    if value is None:
        raise ValueError(f"Missing required environment variable: {key}")
    return value


# API (the default points at the public mock server the catalog was built against)
DEFAULT_API_BASE_URL = "http://127.0.0.1:4523/m1/7116962-6839767-6186241"
API_BASE_URL = get_env("CATALOG_API_BASE_URL", DEFAULT_API_BASE_URL)
API_TIMEOUT = float(get_env("CATALOG_API_TIMEOUT", "10.0"))  # seconds

# Retries after the first attempt; transient failures only (network / 5xx)
MAX_RETRIES = int(get_env("CATALOG_MAX_RETRIES", "2"))
RETRY_DELAY = float(get_env("CATALOG_RETRY_DELAY", "1.0"))  # base seconds, doubled per retry

# Price tiers, in currency units per 1K input tokens
FREE_EPSILON = float(get_env("CATALOG_FREE_EPSILON", "0.001"))
ECONOMIC_MAX = float(get_env("CATALOG_ECONOMIC_MAX", "3.0"))
STANDARD_MAX = float(get_env("CATALOG_STANDARD_MAX", "15.0"))

# Compare list
COMPARE_LIMIT = 4

# Paths
EXPORT_DIR = Path(get_env("CATALOG_EXPORT_DIR", str(_PROJECT_ROOT / "export")))
