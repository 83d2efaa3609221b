"""Configuration loader.

Reads environment variables and `.env` to configure the tracker.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load variables from a .env file if present (project root).
load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name, default)


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes")


def _parse_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _parse_float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value is not None else default
    except ValueError:
        return default


# ---- Schedule ----------------------------------------------------------------

# Crontab expression for the recurring tick (minute hour day month weekday).
CRON_SCHEDULE: str = _get_env("CRON_SCHEDULE", "*/15 * * * *") or "*/15 * * * *"

# Timezone the cron expression is evaluated in.
SCHEDULER_TIMEZONE: str = _get_env("SCHEDULER_TIMEZONE", "UTC") or "UTC"

# Run one tick immediately at startup instead of waiting for the first fire.
RUN_ON_START: bool = _parse_bool(_get_env("RUN_ON_START"), False)

# ---- Fetching ----------------------------------------------------------------

# Number of alerts processed concurrently (one window).
MAX_CONCURRENT_REQUESTS: int = _parse_int(_get_env("MAX_CONCURRENT_REQUESTS"), 5)

# Total GET attempts per tracked page per tick.
RETRY_COUNT: int = _parse_int(_get_env("RETRY_COUNT"), 3)

# Per-attempt request timeout (seconds).
REQUEST_TIMEOUT_SECONDS: float = _parse_float(_get_env("REQUEST_TIMEOUT_SECONDS"), 20.0)

# Cap for exponential wait between attempts. 0 retries immediately.
RETRY_BACKOFF_MAX_SECONDS: float = _parse_float(_get_env("RETRY_BACKOFF_MAX_SECONDS"), 0.0)

USER_AGENT: str = _get_env(
    "USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36",
) or ""

# ---- Storage & logging -------------------------------------------------------

# Path to SQLite database holding the alerts.
SQLITE_DB_PATH: str = _get_env("SQLITE_DB_PATH", "price_tracker.db") or "price_tracker.db"

# Logging level: DEBUG, INFO, WARNING, ERROR.
LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO") or "INFO"

# ---- Email notifications -----------------------------------------------------

EMAIL_SMTP_HOST: str = _get_env("EMAIL_SMTP_HOST", "smtp.gmail.com") or "smtp.gmail.com"
EMAIL_SMTP_PORT: int = _parse_int(_get_env("EMAIL_SMTP_PORT"), 587)  # 587 (TLS) or 465 (SSL)
EMAIL_USE_TLS: bool = _parse_bool(_get_env("EMAIL_USE_TLS", "true"), True)  # if False and port=465, SSL will be used
EMAIL_USERNAME: str | None = _get_env("EMAIL_USERNAME")
EMAIL_PASSWORD: str | None = _get_env("EMAIL_PASSWORD")  # app password if using Gmail
EMAIL_FROM: str | None = _get_env("EMAIL_FROM")
EMAIL_SUBJECT: str = _get_env(
    "EMAIL_SUBJECT", "🚨 Price Drop Alert for Your Tracked Product!"
) or "🚨 Price Drop Alert for Your Tracked Product!"

# ---- Validation --------------------------------------------------------------

def validate() -> None:
    """Validate required configuration parameters."""
    if MAX_CONCURRENT_REQUESTS < 1:
        raise RuntimeError("MAX_CONCURRENT_REQUESTS must be at least 1.")
    if RETRY_COUNT < 1:
        raise RuntimeError("RETRY_COUNT must be at least 1.")
    if REQUEST_TIMEOUT_SECONDS <= 0:
        raise RuntimeError("REQUEST_TIMEOUT_SECONDS must be positive.")
    if len(CRON_SCHEDULE.split()) != 5:
        raise RuntimeError(
            f"CRON_SCHEDULE must have five fields, got {CRON_SCHEDULE!r}."
        )


__all__ = [
    # Schedule
    "CRON_SCHEDULE",
    "SCHEDULER_TIMEZONE",
    "RUN_ON_START",
    # Fetching
    "MAX_CONCURRENT_REQUESTS",
    "RETRY_COUNT",
    "REQUEST_TIMEOUT_SECONDS",
    "RETRY_BACKOFF_MAX_SECONDS",
    "USER_AGENT",
    # Storage & logging
    "SQLITE_DB_PATH",
    "LOG_LEVEL",
    # Email
    "EMAIL_SMTP_HOST", "EMAIL_SMTP_PORT", "EMAIL_USE_TLS",
    "EMAIL_USERNAME", "EMAIL_PASSWORD", "EMAIL_FROM", "EMAIL_SUBJECT",
    # Helpers
    "validate",
]
