"""
Price tracking service package.

This package re-fetches tracked product pages on a cron schedule, extracts
the current price, emails the alert owner when it reaches the target and
retires the satisfied alert.  See README.md for details.
"""

__all__ = [
    "config",
    "db",
    "emailer",
    "errors",
    "evaluator",
    "fetcher",
    "main",
    "models",
    "scheduler",
    "scraper",
    "tracker",
    "utils",
]
