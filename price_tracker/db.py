"""SQLite persistence layer for price alerts."""

from __future__ import annotations

import datetime as _dt
import re
import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import urlparse

from . import config
from .errors import DuplicateAlertError, InvalidAlertError, StoreError
from .models import Alert

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_COLUMNS = "id, title, url, image_url, price, target_price, user_email, created_at"


def _row_to_alert(row: tuple) -> Alert:
    aid, title, url, image_url, price, target, email, created = row
    return Alert(
        id=aid,
        title=title,
        url=url,
        image_url=image_url,
        price=float(price),
        target_price=float(target),
        user_email=email,
        created_at=_dt.datetime.fromisoformat(created),
    )


def _validate(url: str, price: float, target_price: float, user_email: str) -> None:
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidAlertError(f"Invalid URL: {url!r}")
    if not _EMAIL_RE.match(user_email or ""):
        raise InvalidAlertError(f"Invalid email address: {user_email!r}")
    if price < 0 or target_price < 0:
        raise InvalidAlertError("Prices must be non-negative")


class AlertStore:
    """Alert table backed by a SQLite file.

    A connection is opened per operation so the store can be shared by
    worker threads.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or config.SQLITE_DB_PATH

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create tables if they don't exist."""
        try:
            with self._get_connection() as conn:
                conn.execute("""
                  CREATE TABLE IF NOT EXISTS alerts (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    url TEXT NOT NULL,
                    image_url TEXT NOT NULL DEFAULT '',
                    price REAL NOT NULL CHECK (price >= 0),
                    target_price REAL NOT NULL CHECK (target_price >= 0),
                    user_email TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    UNIQUE (url, user_email, target_price)
                  )
                """)
                conn.execute("CREATE INDEX IF NOT EXISTS idx_alerts_email ON alerts(user_email)")
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Could not initialise alert store at {self.path}: {e}") from e

    def find_all(self) -> list[Alert]:
        """Return every stored alert, oldest first."""
        try:
            with self._get_connection() as conn:
                cur = conn.execute(f"SELECT {_COLUMNS} FROM alerts ORDER BY created_at, id")
                return [_row_to_alert(r) for r in cur.fetchall()]
        except sqlite3.Error as e:
            raise StoreError(f"Could not load alerts: {e}") from e

    def find_by_email(self, user_email: str) -> list[Alert]:
        try:
            with self._get_connection() as conn:
                cur = conn.execute(
                    f"SELECT {_COLUMNS} FROM alerts WHERE user_email = ? ORDER BY created_at, id",
                    (user_email,),
                )
                return [_row_to_alert(r) for r in cur.fetchall()]
        except sqlite3.Error as e:
            raise StoreError(f"Could not load alerts for {user_email}: {e}") from e

    def get(self, alert_id: str) -> Alert | None:
        try:
            with self._get_connection() as conn:
                cur = conn.execute(f"SELECT {_COLUMNS} FROM alerts WHERE id = ?", (alert_id,))
                row = cur.fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Could not load alert {alert_id}: {e}") from e
        return _row_to_alert(row) if row else None

    def add_alert(
        self,
        *,
        title: str,
        url: str,
        price: float,
        target_price: float,
        user_email: str,
        image_url: str = "",
    ) -> Alert:
        """Validate and insert a new alert.

        Raises InvalidAlertError for malformed fields and DuplicateAlertError
        when the same (url, user_email, target_price) is already tracked.
        """
        _validate(url, price, target_price, user_email)
        alert = Alert(
            id=uuid.uuid4().hex,
            title=title,
            url=url,
            image_url=image_url or "",
            price=float(price),
            target_price=float(target_price),
            user_email=user_email,
            created_at=_dt.datetime.now(_dt.timezone.utc),
        )
        try:
            with self._get_connection() as conn:
                conn.execute(
                    f"INSERT INTO alerts ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        alert.id, alert.title, alert.url, alert.image_url,
                        alert.price, alert.target_price, alert.user_email,
                        alert.created_at.isoformat(),
                    ),
                )
                conn.commit()
        except sqlite3.IntegrityError as e:
            raise DuplicateAlertError(
                "You already have an alert for this URL with the same target price."
            ) from e
        except sqlite3.Error as e:
            raise StoreError(f"Could not save alert: {e}") from e
        return alert

    def delete_by_id(self, alert_id: str) -> bool:
        """Delete one alert. Returns False when it was already gone."""
        try:
            with self._get_connection() as conn:
                cur = conn.execute("DELETE FROM alerts WHERE id = ?", (alert_id,))
                conn.commit()
                return cur.rowcount > 0
        except sqlite3.Error as e:
            raise StoreError(f"Could not delete alert {alert_id}: {e}") from e


__all__ = ["AlertStore"]
