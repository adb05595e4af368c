"""
Daypart classifier for TMA Insights.

PURPOSE: Bucket transactions by local time of day and compare the buckets.
AI CONTEXT: Pure data processing - rebuilt from scratch on every call.

BUCKETS (local hour, half-open ranges):
- morning    [6, 12)   "Manhã"      06–12
- afternoon  [12, 18)  "Tarde"      12–18
- evening    [18, 24)  "Noite"      18–24
- night      [0, 6)    "Madrugada"  00–06
- unknown    timestamp could not be parsed

TONE (from |average difference|):
- good  <= 60s
- warn  <= 180s
- bad   otherwise

USAGE:
    summary = classify_dayparts(snapshot.transactions)
    for bucket in summary.buckets:
        print(bucket.label, bucket.count, bucket.tone)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .config import Config
from .models import TransactionRecord
from .timeutils import round_half_up

__all__ = [
    "DAYPART_ORDER",
    "DaypartBucket",
    "DaypartSummary",
    "classify_daypart_by_hour",
    "score_tone_from_abs_diff",
    "classify_dayparts",
]

DAYPART_ORDER: tuple[str, ...] = ("morning", "afternoon", "evening", "night", "unknown")

_DAYPART_LABELS: dict[str, tuple[str, str]] = {
    "morning": ("Manhã", "06–12"),
    "afternoon": ("Tarde", "12–18"),
    "evening": ("Noite", "18–24"),
    "night": ("Madrugada", "00–06"),
    "unknown": ("Sem horário", "—"),
}

_TONE_BADGES: dict[str, str] = {
    "good": "Perto de 0 (bom)",
    "warn": "Oscilando (ok)",
    "bad": "Longe de 0 (atenção)",
}


def classify_daypart_by_hour(hour: int | None) -> str:
    """
    Map a local hour to a daypart key.

    Args:
        hour: Local hour 0-23, or None when the time is unknown.

    Returns:
        One of DAYPART_ORDER.

    Example:
        >>> classify_daypart_by_hour(12)
        'afternoon'
        >>> classify_daypart_by_hour(5)
        'night'
    """
    if hour is None:
        return "unknown"
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 24:
        return "evening"
    return "night"


def score_tone_from_abs_diff(abs_diff_seconds: float) -> str:
    """Classify an average deviation as good/warn/bad."""
    seconds = abs(abs_diff_seconds)
    if seconds <= Config.TONE_GOOD_SECONDS:
        return "good"
    if seconds <= Config.TONE_WARN_SECONDS:
        return "warn"
    return "bad"


@dataclass
class DaypartBucket:
    """Accumulated metrics for one daypart."""

    key: str
    count: int = 0
    sum_spent: float = 0.0
    sum_diff: float = 0.0
    under_count: int = 0

    @property
    def label(self) -> str:
        return _DAYPART_LABELS[self.key][0]

    @property
    def range_label(self) -> str:
        return _DAYPART_LABELS[self.key][1]

    @property
    def avg_spent(self) -> float:
        return self.sum_spent / max(1, self.count)

    @property
    def avg_diff(self) -> float:
        return self.sum_diff / max(1, self.count)

    @property
    def pct_under(self) -> int:
        """Share of transactions at or under target, as a rounded percentage."""
        return round_half_up(self.under_count / max(1, self.count) * 100)

    @property
    def tone(self) -> str:
        return score_tone_from_abs_diff(abs(self.avg_diff))

    @property
    def badge(self) -> str:
        return _TONE_BADGES[self.tone]

    def add(self, transaction: TransactionRecord) -> None:
        diff = transaction.diff_or_zero
        self.count += 1
        self.sum_spent += transaction.time_spent
        self.sum_diff += diff
        if diff <= 0:
            self.under_count += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "range": self.range_label,
            "count": self.count,
            "sumSpent": self.sum_spent,
            "sumDiff": self.sum_diff,
            "underCount": self.under_count,
            "avgSpent": self.avg_spent,
            "avgDiff": self.avg_diff,
            "pctUnder": self.pct_under,
            "tone": self.tone,
        }


@dataclass
class DaypartSummary:
    """
    Non-empty buckets in display order plus the best/worst comparison.

    best/worst are the buckets with the lowest/highest average time spent.
    They are only worth showing when has_contrast is True.
    """

    buckets: list[DaypartBucket] = field(default_factory=list)
    best: DaypartBucket | None = None
    worst: DaypartBucket | None = None

    @property
    def is_empty(self) -> bool:
        return not self.buckets

    @property
    def total_count(self) -> int:
        return sum(b.count for b in self.buckets)

    @property
    def has_contrast(self) -> bool:
        return (
            len(self.buckets) >= 2
            and self.best is not None
            and self.worst is not None
            and self.best.key != self.worst.key
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "buckets": [b.to_dict() for b in self.buckets],
            "best": self.best.key if self.has_contrast and self.best else None,
            "worst": self.worst.key if self.has_contrast and self.worst else None,
        }


def _local_hour(transaction: TransactionRecord) -> int | None:
    moment = transaction.parsed_time().local()
    return moment.hour if moment is not None else None


def classify_dayparts(transactions: Iterable[TransactionRecord]) -> DaypartSummary:
    """
    Bucket transactions by the local hour of their timestamp.

    Transactions whose timestamp cannot be parsed land in "unknown", so the
    bucket counts always add up to the number of transactions.

    Args:
        transactions: Records in any order.

    Returns:
        DaypartSummary with only non-empty buckets, ordered morning,
        afternoon, evening, night, unknown. On ties, the earlier bucket in
        that order stays best/worst.

    Example:
        >>> summary = classify_dayparts(snapshot.transactions)
        >>> summary.has_contrast
        True
    """
    buckets: dict[str, DaypartBucket] = {}
    for transaction in transactions:
        key = classify_daypart_by_hour(_local_hour(transaction))
        buckets.setdefault(key, DaypartBucket(key)).add(transaction)

    ordered = [buckets[key] for key in DAYPART_ORDER if key in buckets and buckets[key].count > 0]

    best: DaypartBucket | None = None
    worst: DaypartBucket | None = None
    for bucket in ordered:
        if best is None or bucket.avg_spent < best.avg_spent:
            best = bucket
        if worst is None or bucket.avg_spent > worst.avg_spent:
            worst = bucket

    return DaypartSummary(buckets=ordered, best=best, worst=worst)
