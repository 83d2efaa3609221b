"""Decide whether an alert's target price has been reached."""

from __future__ import annotations

from enum import Enum

from .models import Alert


class Decision(str, Enum):
    FIRE = "fire"
    NO_FIRE = "no-fire"


def evaluate(alert: Alert, current_price: float) -> Decision:
    """FIRE when the current price is at or below the alert's target."""
    if current_price <= alert.target_price:
        return Decision.FIRE
    return Decision.NO_FIRE


__all__ = ["Decision", "evaluate"]
