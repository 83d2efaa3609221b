"""Email notifier via SMTP.

Renders the price drop message for a fired alert and delivers it to the
alert owner.  Supports STARTTLS (587) or SSL (465).
"""

from __future__ import annotations

import datetime as _dt
import html as _html
import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Callable, Optional

from . import config
from .errors import NotifyError
from .models import Alert

logger = logging.getLogger(__name__)

SendFn = Callable[[str, str, str, Optional[str]], None]

_STYLE = (
    "body { font-family: Arial, sans-serif; margin: 0; padding: 0; background-color: #f9f9f9; color: #333; }"
    ".container { max-width: 600px; margin: 20px auto; background-color: #fff; padding: 20px;"
    " border: 1px solid #ddd; border-radius: 8px; }"
    ".header { text-align: center; border-bottom: 1px solid #ddd; padding-bottom: 10px; }"
    ".header h1 { margin: 0; color: #007BFF; }"
    ".content p { line-height: 1.6; font-size: 16px; }"
    ".content a { display: inline-block; margin-top: 10px; padding: 10px 20px; background-color: #007BFF;"
    " color: #fff; text-decoration: none; border-radius: 4px; font-weight: bold; }"
    ".footer { margin-top: 20px; text-align: center; font-size: 12px; color: #888; }"
)


def build_subject(alert: Alert) -> str:
    title = (alert.title or "").strip()
    if not title:
        return config.EMAIL_SUBJECT
    return f"{config.EMAIL_SUBJECT} {title}"


def _format_price(value: float) -> str:
    # Whole prices render without a trailing ".0".
    if float(value).is_integer():
        return str(int(value))
    return f"{float(value):.2f}"


def render_price_drop_email(
    title: str,
    current_price: float,
    url: str,
    *,
    year: Optional[int] = None,
) -> tuple[str, str]:
    """Return (plain_text, html) bodies for a price drop."""
    year = year if year is not None else _dt.datetime.now(_dt.timezone.utc).year
    price = _format_price(current_price)
    title = title or "Your tracked product"

    plain = (
        "Price Drop Alert!\n\n"
        f"{title}\n\n"
        f"Good news! The price for the product you are tracking has dropped to {price}.\n"
        "Don't miss this opportunity to grab the product at a discounted price.\n\n"
        f"View product: {url}\n\n"
        "You are receiving this email because you subscribed to price alerts.\n"
    )

    html = (
        "<!DOCTYPE html>"
        "<html>"
        "<head><style>{style}</style></head>"
        "<body>"
        '<div class="container">'
        '<div class="header"><h1>Price Drop Alert!</h1></div>'
        '<div class="content">'
        "<h4>{title}</h4>"
        "<p>Good news! The price for the product you are tracking has dropped to <strong>{price}</strong>.</p>"
        "<p>Don't miss this opportunity to grab the product at a discounted price.</p>"
        '<a href="{url}" target="_blank">View Product</a>'
        "</div>"
        '<div class="footer">'
        "<p>You are receiving this email because you subscribed to price alerts on our platform.</p>"
        "<p>&copy; {year} Price Tracker. All rights reserved.</p>"
        "</div>"
        "</div>"
        "</body>"
        "</html>"
    ).format(
        style=_STYLE,
        title=_html.escape(title),
        price=price,
        url=_html.escape(url, quote=True),
        year=year,
    )

    return plain, html


def send_email(
    to_address: str,
    subject: str,
    html_body: str,
    plain_body: Optional[str] = None,
) -> None:
    """Deliver one message over SMTP. Raises NotifyError on any failure."""
    required = (config.EMAIL_USERNAME, config.EMAIL_PASSWORD)
    if not all(required):
        raise NotifyError("Email config incomplete; set EMAIL_USERNAME and EMAIL_PASSWORD")
    if not to_address:
        raise NotifyError("No destination address")

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = config.EMAIL_FROM or (config.EMAIL_USERNAME or "")
    msg["To"] = to_address
    msg.set_content(plain_body or "This message requires an HTML capable mail client.")
    msg.add_alternative(html_body, subtype="html")

    host, port = config.EMAIL_SMTP_HOST, int(config.EMAIL_SMTP_PORT)
    try:
        if config.EMAIL_USE_TLS and port == 587:
            with smtplib.SMTP(host, port, timeout=20) as s:
                s.ehlo()
                s.starttls(context=ssl.create_default_context())
                s.login(config.EMAIL_USERNAME, config.EMAIL_PASSWORD)
                s.send_message(msg)
        else:
            with smtplib.SMTP_SSL(host, port, context=ssl.create_default_context(), timeout=20) as s:
                s.login(config.EMAIL_USERNAME, config.EMAIL_PASSWORD)
                s.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        raise NotifyError(f"Failed to send email to {to_address}: {e}") from e
    logger.info("Email sent to %s (subject=%s)", to_address, subject)


def notify_price_drop(alert: Alert, current_price: float, send: SendFn = send_email) -> None:
    """Render the price drop email for `alert` and send it to its owner."""
    subject = build_subject(alert)
    plain, html = render_price_drop_email(alert.title, current_price, alert.url)
    send(alert.user_email, subject, html, plain)


__all__ = [
    "build_subject",
    "render_price_drop_email",
    "send_email",
    "notify_price_drop",
]
