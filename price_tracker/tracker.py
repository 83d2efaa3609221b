"""Batch price check over the full alert set.

Alerts are processed in fixed-size windows.  Every alert in a window is
checked concurrently; the next window starts only once all tasks of the
current one have produced an outcome.  Each task runs

    fetch -> extract -> evaluate -> (fire) notify -> delete

and turns any failure into a TickOutcome, so one broken page never stops
its siblings.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Protocol, Sequence

from . import config, emailer, fetcher, scraper
from .errors import ExtractionError, FetchError, NotifyError, StoreError
from .evaluator import Decision, evaluate
from .models import Alert, OutcomeKind, TickOutcome

logger = logging.getLogger(__name__)


class AlertStoreLike(Protocol):
    def find_all(self) -> List[Alert]: ...

    def delete_by_id(self, alert_id: str) -> bool: ...


FetchFn = Callable[[str], str]
ExtractorFor = Callable[[str], scraper.PriceExtractor]


def iter_windows(alerts: Sequence[Alert], window_size: int) -> List[Sequence[Alert]]:
    """Split `alerts` into contiguous slices of at most `window_size`."""
    if window_size < 1:
        raise ValueError("window_size must be at least 1")
    return [alerts[i : i + window_size] for i in range(0, len(alerts), window_size)]


class PriceTracker:
    """Run the per-alert pipeline over windows of alerts."""

    def __init__(
        self,
        store: AlertStoreLike,
        *,
        window_size: int = config.MAX_CONCURRENT_REQUESTS,
        max_attempts: int = config.RETRY_COUNT,
        request_timeout: float = config.REQUEST_TIMEOUT_SECONDS,
        backoff_max: float = config.RETRY_BACKOFF_MAX_SECONDS,
        fetch: Optional[FetchFn] = None,
        extractor_for: Optional[ExtractorFor] = None,
        send: Optional[emailer.SendFn] = None,
    ) -> None:
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self.store = store
        self.window_size = window_size
        self.max_attempts = max_attempts
        self.request_timeout = request_timeout
        self.backoff_max = backoff_max
        self._fetch = fetch or self._default_fetch
        self._extractor_for = extractor_for or scraper.get_extractor
        self._send = send or emailer.send_email
        self.last_window_count = 0

    def _default_fetch(self, url: str) -> str:
        return fetcher.fetch(
            url,
            self.max_attempts,
            timeout=self.request_timeout,
            backoff_max=self.backoff_max,
        )

    def process_alert(self, alert: Alert) -> TickOutcome:
        """Check one alert. Never raises."""
        try:
            return self._process(alert)
        except Exception as e:
            logger.exception("Unexpected error processing alert %s (%s)", alert.id, alert.url)
            return TickOutcome(alert.id, alert.url, OutcomeKind.ERROR, error=str(e))

    def _process(self, alert: Alert) -> TickOutcome:
        try:
            html = self._fetch(alert.url)
        except FetchError as e:
            logger.warning("Fetch failed for alert %s: %s", alert.id, e)
            return TickOutcome(alert.id, alert.url, OutcomeKind.FETCH_FAILED, error=str(e))

        try:
            current_price = self._extractor_for(alert.url).extract_price(html)
        except ExtractionError as e:
            logger.warning("Could not extract price for alert %s (%s): %s", alert.id, alert.url, e)
            return TickOutcome(alert.id, alert.url, OutcomeKind.EXTRACTION_FAILED, error=str(e))

        if evaluate(alert, current_price) is Decision.NO_FIRE:
            logger.debug(
                "No drop for alert %s: %.2f > target %.2f",
                alert.id, current_price, alert.target_price,
            )
            return TickOutcome(alert.id, alert.url, OutcomeKind.NO_CHANGE, price=current_price)

        try:
            emailer.notify_price_drop(alert, current_price, send=self._send)
        except NotifyError as e:
            logger.warning("Notification failed for alert %s; keeping it: %s", alert.id, e)
            return TickOutcome(
                alert.id, alert.url, OutcomeKind.NOTIFY_FAILED, price=current_price, error=str(e)
            )
        logger.info(
            "Price drop email sent to %s for %s (price=%.2f target=%.2f)",
            alert.user_email, alert.url, current_price, alert.target_price,
        )

        try:
            deleted = self.store.delete_by_id(alert.id)
        except StoreError as e:
            # Alert stays; it will notify again next tick.
            logger.error("Notified but could not delete alert %s: %s", alert.id, e)
            return TickOutcome(
                alert.id, alert.url, OutcomeKind.DELETE_FAILED, price=current_price, error=str(e)
            )
        if not deleted:
            logger.debug("Alert %s was already deleted", alert.id)

        return TickOutcome(alert.id, alert.url, OutcomeKind.FIRED, price=current_price)

    def run_batches(self, alerts: Sequence[Alert]) -> List[TickOutcome]:
        """Process `alerts` window by window and return outcomes in input order."""
        windows = iter_windows(alerts, self.window_size)
        self.last_window_count = len(windows)
        outcomes: List[TickOutcome] = []
        if not windows:
            return outcomes

        with ThreadPoolExecutor(
            max_workers=self.window_size, thread_name_prefix="price-check"
        ) as pool:
            for idx, window in enumerate(windows, start=1):
                logger.debug("Window %d/%d: %d alert(s)", idx, len(windows), len(window))
                futures = [pool.submit(self.process_alert, a) for a in window]
                wait(futures)
                for alert, fut in zip(window, futures):
                    exc = fut.exception()
                    if exc is not None:
                        outcomes.append(
                            TickOutcome(alert.id, alert.url, OutcomeKind.ERROR, error=str(exc))
                        )
                    else:
                        outcomes.append(fut.result())
        return outcomes


__all__ = ["PriceTracker", "iter_windows"]
