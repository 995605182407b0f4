# src/config/settings.py

"""Central configuration for the pricewatch engine."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    """Read a float override from the environment."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    """Read an int override from the environment."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Settings:
    """Central configuration for the pricewatch engine."""

    # --- Scheduling ---
    ALARM_NAME: str = "dailyPriceCheck"
    CHECK_INTERVAL_MINUTES: int = _env_int(
        "PRICEWATCH_CHECK_INTERVAL_MINUTES", 1440
    )

    # --- Check cycle pacing ---
    SETTLE_DELAY: float = _env_float("PRICEWATCH_SETTLE_DELAY", 5.0)
    EXTRACTION_TIMEOUT: float = _env_float(
        "PRICEWATCH_EXTRACTION_TIMEOUT", 15.0
    )
    PACING_DELAY: float = _env_float("PRICEWATCH_PACING_DELAY", 2.0)

    # --- History ---
    MAX_HISTORY: int = _env_int("PRICEWATCH_MAX_HISTORY", 30)
    HISTORY_MAX_AGE_DAYS: int = _env_int(
        "PRICEWATCH_HISTORY_MAX_AGE_DAYS", 90
    )
    DROPS_LOOKBACK_DAYS: int = 7
    TREND_WINDOW: int = 5

    # --- Change detection / alerts ---
    CHANGE_EPSILON: float = 0.01         # Ignore sub-cent noise
    SIGNIFICANCE_THRESHOLD_PCT: float = 5.0
    ALERT_POLICY: str = os.getenv("PRICEWATCH_ALERT_POLICY", "price_drop")
    ALERT_MIN_CHANGE_PCT: float = _env_float(
        "PRICEWATCH_ALERT_MIN_CHANGE_PCT", 0.0
    )

    # --- Storage keys ---
    PRODUCTS_KEY: str = "saved_products"
    TRACKING_KEY: str = "price_tracking_data"

    # --- Page fetching ---
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    MAX_RETRIES: int = 3                # Retry count on transient failures
    RETRY_DELAY: float = 2.0            # Base backoff between retries
    CAPTCHA_KEYWORDS: list[str] = [
        "captcha",
        "verify you are human",
        "unusual traffic",
        "automated requests",
    ]
    PRICE_NOT_FOUND: str = "No price found"

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/avif,"
            "image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9",
        "sec-ch-ua": (
            '"Google Chrome";v="131", '
            '"Chromium";v="131", '
            '"Not_A Brand";v="24"'
        ),
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "sec-fetch-dest": "document",
        "sec-fetch-mode": "navigate",
        "sec-fetch-site": "none",
        "sec-fetch-user": "?1",
        "Upgrade-Insecure-Requests": "1",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = BASE_DIR / "src" / "config" / "selectors.json"
    DATA_DIR: Path = Path(
        os.getenv("PRICEWATCH_DATA_DIR", str(BASE_DIR / "data"))
    )
    STORE_PATH: Path = DATA_DIR / "pricewatch.db"
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Logging ---
    CONSOLE_LOG_LEVEL: str = os.getenv("PRICEWATCH_CONSOLE_LOG_LEVEL", "WARNING")
    LOG_RETENTION_RUNS: int = _env_int("PRICEWATCH_LOG_RETENTION_RUNS", 20)
