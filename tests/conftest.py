from __future__ import annotations

import datetime as dt
import threading

import pytest
import requests

from price_tracker.errors import StoreError
from price_tracker.models import Alert


def make_alert(aid="a1", *, url="https://www.amazon.in/dp/X", target=500.0, price=550.0,
               email="user@example.com", title="Widget") -> Alert:
    return Alert(
        id=aid,
        title=title,
        url=url,
        image_url="",
        price=price,
        target_price=target,
        user_email=email,
        created_at=dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc),
    )


def amazon_page(price_text: str, title: str = "Widget") -> str:
    return (
        "<html><body>"
        f'<div id="centerCol"><span id="productTitle"> {title} </span></div>'
        f'<span class="a-price"><span class="a-price-whole">{price_text}</span></span>'
        '<span class="a-price-whole">1</span>'
        '<div class="imgTagWrapper"><img src="https://img.example.com/widget.jpg"></div>'
        "</body></html>"
    )


class MemoryStore:
    """In-memory alert store recording deletes."""

    def __init__(self, alerts=()):
        self._alerts = {a.id: a for a in alerts}
        self.deleted: list[str] = []
        self.fail_find = False
        self.fail_delete = False
        self._lock = threading.Lock()

    def find_all(self):
        if self.fail_find:
            raise StoreError("store unreachable")
        return list(self._alerts.values())

    def delete_by_id(self, alert_id):
        if self.fail_delete:
            raise StoreError("delete failed")
        with self._lock:
            self.deleted.append(alert_id)
            return self._alerts.pop(alert_id, None) is not None

    def __contains__(self, alert_id):
        return alert_id in self._alerts


class RecordingSender:
    def __init__(self, fail=False):
        self.sent: list[tuple] = []
        self.fail = fail
        self._lock = threading.Lock()

    def __call__(self, to, subject, html, plain=None):
        from price_tracker.errors import NotifyError

        if self.fail:
            raise NotifyError("smtp down")
        with self._lock:
            self.sent.append((to, subject, html, plain))


def make_response(status: int = 200, text: str = "", url: str = "https://shop.example/p") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = text.encode("utf-8")
    resp.encoding = "utf-8"
    resp.url = url
    return resp


class FakeSession:
    """Returns (or raises) the scripted results in order."""

    def __init__(self, results):
        self.results = list(results)
        self.calls: list[tuple] = []
        self.closed = False

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        item = self.results.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


@pytest.fixture
def sender():
    return RecordingSender()
