"""Exception types raised by the tracker and its collaborators."""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for all price tracker errors."""


class FetchError(TrackerError):
    """Raised when a tracked page could not be fetched after all attempts."""

    def __init__(self, url: str, attempts: int, reason: str = "") -> None:
        self.url = url
        self.attempts = attempts
        self.reason = reason
        msg = f"Failed to fetch {url} after {attempts} attempt(s)"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ExtractionError(TrackerError):
    """Raised when the expected price element is missing or not numeric."""


class NotifyError(TrackerError):
    """Raised when a notification could not be delivered."""


class StoreError(TrackerError):
    """Raised when the alert store cannot be read or written."""


class DuplicateAlertError(StoreError):
    """An alert with the same URL, email and target price already exists."""


class InvalidAlertError(StoreError):
    """Alert fields failed validation at the store boundary."""


__all__ = [
    "TrackerError",
    "FetchError",
    "ExtractionError",
    "NotifyError",
    "StoreError",
    "DuplicateAlertError",
    "InvalidAlertError",
]
