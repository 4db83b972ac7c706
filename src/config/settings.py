# src/config/settings.py

"""Central configuration for the storefront_search engine."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the storefront_search engine."""

    # --- Remote API ---
    API_BASE_URL: str = os.getenv(
        "STOREFRONT_API_URL", "http://localhost:8000/api"
    )
    API_TOKEN: str = os.getenv("STOREFRONT_API_TOKEN", "")
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    MAX_RETRIES: int = 3                # Retry count on transient GET failures
    RETRY_BACKOFF: float = 0.5          # Seconds, multiplied by attempt number

    # --- Search-as-you-type ---
    SEARCH_DEBOUNCE_SECONDS: float = 0.3
    MIN_QUERY_LENGTH: int = 2           # Normalized characters
    PRODUCT_PAGE_SIZE: int = 100
    FALLBACK_PAGES: tuple[int, ...] = (2, 3)
    BRAND_RESULT_LIMIT: int = 5
    CATEGORY_RESULT_LIMIT: int = 5

    # --- Local cache ---
    RECENT_SEARCH_LIMIT: int = 10
    TRENDING_SEARCH_LIMIT: int = 10
    RECENTLY_VIEWED_LIMIT: int = 10
    TRENDING_CACHE_TTL_MS: int = 600_000   # 10 minutes
    GUEST_IDENTITY: str = "guest"

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    LOGS_DIR: Path = BASE_DIR / "logs"
    STORE_DB_PATH: Path = Path(
        os.getenv(
            "STOREFRONT_STORE_PATH",
            str(BASE_DIR / "data" / "search_cache.db"),
        )
    )
