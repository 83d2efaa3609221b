import smtplib

import pytest

from price_tracker import config, emailer
from price_tracker.errors import NotifyError
from tests.conftest import RecordingSender, make_alert


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None, **kwargs):
        self.host, self.port = host, port
        self.messages = []
        self.tls = False
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        pass

    def starttls(self, context=None):
        self.tls = True

    def login(self, user, password):
        self.user = user

    def send_message(self, msg):
        self.messages.append(msg)


class BrokenSMTP(FakeSMTP):
    def send_message(self, msg):
        raise smtplib.SMTPServerDisconnected("gone")


@pytest.fixture
def smtp_config(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(config, "EMAIL_USERNAME", "bot@example.com")
    monkeypatch.setattr(config, "EMAIL_PASSWORD", "secret")
    monkeypatch.setattr(config, "EMAIL_FROM", "alerts@example.com")
    monkeypatch.setattr(config, "EMAIL_SMTP_PORT", 587)
    monkeypatch.setattr(config, "EMAIL_USE_TLS", True)


def test_render_includes_title_price_and_link():
    plain, html = emailer.render_price_drop_email("Widget <Pro>", 499, "https://shop.example/p?a=1&b=2", year=2024)
    assert "Widget <Pro>" in plain
    assert "499" in plain and "https://shop.example/p?a=1&b=2" in plain
    assert "Widget &lt;Pro&gt;" in html
    assert "<strong>499</strong>" in html
    assert 'href="https://shop.example/p?a=1&amp;b=2"' in html
    assert "&copy; 2024" in html


def test_render_is_deterministic():
    a = emailer.render_price_drop_email("T", 10.5, "https://x.example", year=2024)
    b = emailer.render_price_drop_email("T", 10.5, "https://x.example", year=2024)
    assert a == b
    assert "10.50" in a[0]


def test_subject_mentions_price_drop():
    assert "Price Drop" in emailer.build_subject(make_alert())


def test_subject_names_the_product():
    subject = emailer.build_subject(make_alert(title="Steel Kettle"))
    assert "Price Drop" in subject
    assert "Steel Kettle" in subject
    assert emailer.build_subject(make_alert(title="")) == config.EMAIL_SUBJECT


def test_notify_price_drop_uses_sender():
    send = RecordingSender()
    emailer.notify_price_drop(make_alert(email="owner@example.com"), 480.0, send=send)
    (to, subject, html, plain), = send.sent
    assert to == "owner@example.com"
    assert "Price Drop" in subject
    assert "480" in html and "480" in plain


def test_send_email_over_starttls(monkeypatch, smtp_config):
    monkeypatch.setattr(emailer.smtplib, "SMTP", FakeSMTP)
    emailer.send_email("owner@example.com", "Price Drop", "<p>hi</p>", "hi")
    smtp, = FakeSMTP.instances
    assert smtp.tls is True
    msg, = smtp.messages
    assert msg["To"] == "owner@example.com"
    assert msg["From"] == "alerts@example.com"


def test_send_email_failure_raises_notify_error(monkeypatch, smtp_config):
    monkeypatch.setattr(emailer.smtplib, "SMTP", BrokenSMTP)
    with pytest.raises(NotifyError):
        emailer.send_email("owner@example.com", "Price Drop", "<p>hi</p>")


def test_send_email_requires_credentials(monkeypatch):
    monkeypatch.setattr(config, "EMAIL_USERNAME", None)
    with pytest.raises(NotifyError):
        emailer.send_email("owner@example.com", "Price Drop", "<p>hi</p>")
