"""Bounded-retry page fetcher."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from . import config
from .errors import FetchError
from .utils import HTTPError, build_retrying, check_status, get_http_session

logger = logging.getLogger(__name__)


def fetch(
    url: str,
    max_attempts: int = config.RETRY_COUNT,
    *,
    timeout: float = config.REQUEST_TIMEOUT_SECONDS,
    backoff_max: float = config.RETRY_BACKOFF_MAX_SECONDS,
    session: Optional[requests.Session] = None,
) -> str:
    """GET `url` and return the response body.

    Transport failures and non-2xx statuses are retried until
    `max_attempts` attempts have been made, then FetchError is raised.
    """
    retrying = build_retrying(max_attempts, backoff_max=backoff_max, label=url)

    close_session = False
    if session is None:
        session = get_http_session()
        close_session = True

    attempts = 0
    try:
        for attempt in retrying:
            with attempt:
                attempts += 1
                resp = session.get(url, timeout=timeout)
                check_status(resp)
                return resp.text
    except (requests.RequestException, HTTPError) as e:
        raise FetchError(url, attempts, str(e)) from e
    finally:
        if close_session:
            session.close()
    # Unreachable: tenacity either returns from the block or reraises.
    raise FetchError(url, attempts)


__all__ = ["fetch"]
