"""Alert record and per-tick result types."""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional


@dataclass
class Alert:
    id: str
    title: str
    url: str
    image_url: str
    price: float          # last-known price, informational only
    target_price: float   # fires when the current price is at or below this
    user_email: str
    created_at: _dt.datetime


class OutcomeKind(str, Enum):
    NO_CHANGE = "no-change"
    FIRED = "fired-and-notified"
    FETCH_FAILED = "fetch-failed"
    EXTRACTION_FAILED = "extraction-failed"
    NOTIFY_FAILED = "notify-failed"
    DELETE_FAILED = "delete-failed"
    ERROR = "error"


@dataclass
class TickOutcome:
    """What happened to one alert during one tick."""

    alert_id: str
    url: str
    kind: OutcomeKind
    price: Optional[float] = None
    error: Optional[str] = None


@dataclass
class TickSummary:
    """Aggregate counts for a finished tick."""

    total: int
    counts: Dict[OutcomeKind, int] = field(default_factory=dict)
    windows: int = 0
    started_at: Optional[_dt.datetime] = None
    duration: float = 0.0

    @classmethod
    def from_outcomes(
        cls,
        outcomes: Iterable[TickOutcome],
        *,
        windows: int = 0,
        started_at: Optional[_dt.datetime] = None,
        duration: float = 0.0,
    ) -> "TickSummary":
        counts = {kind: 0 for kind in OutcomeKind}
        total = 0
        for o in outcomes:
            counts[o.kind] += 1
            total += 1
        return cls(
            total=total,
            counts=counts,
            windows=windows,
            started_at=started_at,
            duration=duration,
        )

    def count(self, kind: OutcomeKind) -> int:
        return self.counts.get(kind, 0)

    def describe(self) -> str:
        parts = [f"total={self.total}"]
        for kind in OutcomeKind:
            parts.append(f"{kind.name.lower()}={self.count(kind)}")
        parts.append(f"windows={self.windows}")
        parts.append(f"duration={self.duration:.2f}s")
        return " ".join(parts)


__all__ = ["Alert", "OutcomeKind", "TickOutcome", "TickSummary"]
