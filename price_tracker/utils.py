"""Helper utilities.

This module centralises common helper functions such as creating a
configured HTTP session and building the retry policy applied to page
fetches.
"""

from __future__ import annotations

import logging
from typing import Callable

import requests
from requests import Response
from tenacity import (RetryCallState, Retrying, retry_if_exception_type,
                      stop_after_attempt, wait_exponential, wait_none)

from . import config


logger = logging.getLogger(__name__)


def get_http_session() -> requests.Session:
    """Return a new HTTP session with browser-like defaults.

    Retail product pages tend to reject obvious bots, so the session sends
    a realistic User-Agent and HTML Accept headers.  Caller is responsible
    for closing the session.
    """
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": config.USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
    )
    return session


class HTTPError(Exception):
    """Raised when a page responds with a non-2xx status."""


def check_status(resp: Response) -> None:
    """Raise HTTPError unless the response status is 2xx."""
    if not 200 <= resp.status_code < 300:
        raise HTTPError(f"Server returned status {resp.status_code} for {resp.url}")


def _log_retry(label: str) -> Callable[[RetryCallState], None]:
    def log_it(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Retrying fetch for %s, attempt %d failed: %s",
            label, retry_state.attempt_number, exc,
        )
    return log_it


def build_retrying(max_attempts: int, *, backoff_max: float = 0.0, label: str = "request") -> Retrying:
    """Return a tenacity policy for page fetches.

    Retries network errors and non-2xx responses up to `max_attempts`
    total attempts.  With `backoff_max` of 0 the next attempt starts
    immediately; otherwise waits grow exponentially up to `backoff_max`
    seconds.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    wait = wait_exponential(multiplier=0.5, max=backoff_max) if backoff_max > 0 else wait_none()
    return Retrying(
        reraise=True,
        stop=stop_after_attempt(max_attempts),
        wait=wait,
        retry=(
            retry_if_exception_type(requests.RequestException)
            | retry_if_exception_type(HTTPError)
        ),
        before_sleep=_log_retry(label),
    )


__all__ = ["get_http_session", "build_retrying", "check_status", "HTTPError"]
