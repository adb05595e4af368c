"""
Chart-data preparer for TMA Insights.

PURPOSE: Compute the data behind the balance chart and the deviation histogram.
AI CONTEXT: No drawing here. presenters.ChartPresenter renders what this module returns.

BALANCE SERIES:
Running sum of differences, oldest to newest. The x axis is the
transaction time when enough timestamps parse, otherwise the position in
the list.

HISTOGRAM BINS (seconds, low side open, high side closed):
    (-inf, -300]  (-300, -120]  (-120, -30]  (-30, 30]
    (30, 120]     (120, 300]    (300, +inf)
Every finite difference lands in exactly one bin.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .config import Config
from .models import TransactionRecord

__all__ = [
    "BalancePoint",
    "BalanceSeries",
    "HistogramBin",
    "BinCount",
    "HISTOGRAM_BINS",
    "prepare_balance_series",
    "prepare_histogram",
]


@dataclass(frozen=True)
class BalancePoint:
    index: int
    timestamp: datetime | None
    cumulative: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "cumulative": self.cumulative,
        }


@dataclass(frozen=True)
class BalanceSeries:
    """
    Cumulative balance points plus the vertical range to plot.

    min_value/max_value always include 0 so the zero line is visible.
    """

    points: list[BalancePoint] = field(default_factory=list)
    uses_time_axis: bool = False
    min_value: float = 0.0
    max_value: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def final_value(self) -> float:
        return self.points[-1].cumulative if self.points else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "points": [p.to_dict() for p in self.points],
            "usesTimeAxis": self.uses_time_axis,
            "min": self.min_value,
            "max": self.max_value,
        }


def prepare_balance_series(transactions_oldest_first: Sequence[TransactionRecord]) -> BalanceSeries:
    """
    Build the cumulative balance series.

    Missing differences count as 0. The time axis is used when at least
    max(2, floor(n * 0.5)) timestamps parse; points without a time then
    keep their index position only.

    Args:
        transactions_oldest_first: Records in chronological order.

    Returns:
        BalanceSeries; empty input yields an empty series with min=max=0.

    Example:
        >>> series = prepare_balance_series(snapshot.transactions_oldest_first)
        >>> series.final_value == sum(tx.diff_or_zero for tx in snapshot.transactions)
        True
    """
    points: list[BalancePoint] = []
    running = 0.0
    parsed_count = 0
    for index, tx in enumerate(transactions_oldest_first):
        running += tx.diff_or_zero
        moment = tx.parsed_time().local()
        if moment is not None:
            parsed_count += 1
        points.append(BalancePoint(index=index, timestamp=moment, cumulative=running))

    if not points:
        return BalanceSeries()

    needed = max(2, math.floor(len(points) * Config.TIME_AXIS_MIN_RATIO))
    values = [p.cumulative for p in points]
    return BalanceSeries(
        points=points,
        uses_time_axis=parsed_count >= needed,
        min_value=min(0.0, *values),
        max_value=max(0.0, *values),
    )


@dataclass(frozen=True)
class HistogramBin:
    """A fixed deviation range; membership is low < d <= high."""

    label: str
    low: float
    high: float

    def contains(self, value: float) -> bool:
        return self.low < value <= self.high

    @property
    def tone(self) -> str:
        """good for bins entirely at or under target, bad for bins at or over."""
        if self.high <= 0:
            return "good"
        if self.low >= 0:
            return "bad"
        return "warn"


HISTOGRAM_BINS: tuple[HistogramBin, ...] = (
    HistogramBin("≤ -5 min", -math.inf, -300),
    HistogramBin("-5..-2 min", -300, -120),
    HistogramBin("-2 min..-30s", -120, -30),
    HistogramBin("-30..+30s", -30, 30),
    HistogramBin("+30s..+2 min", 30, 120),
    HistogramBin("+2..+5 min", 120, 300),
    HistogramBin("≥ +5 min", 300, math.inf),
)


@dataclass(frozen=True)
class BinCount:
    label: str
    low: float
    high: float
    count: int
    tone: str

    def to_dict(self) -> dict[str, Any]:
        # JSON has no infinity; open ends are null
        return {
            "label": self.label,
            "min": self.low if math.isfinite(self.low) else None,
            "max": self.high if math.isfinite(self.high) else None,
            "count": self.count,
            "tone": self.tone,
        }


def prepare_histogram(diffs: Iterable[float | None]) -> list[BinCount]:
    """
    Count differences per fixed bin.

    Args:
        diffs: Differences in seconds, any order. None and NaN are skipped.

    Returns:
        One BinCount per HISTOGRAM_BINS entry, in bin order; counts sum to
        the number of usable values.

    Example:
        >>> [b.count for b in prepare_histogram([-400, 0, 30, 31, 301])]
        [1, 0, 0, 2, 1, 0, 1]
    """
    counts = [0] * len(HISTOGRAM_BINS)
    for diff in diffs:
        if diff is None or math.isnan(diff):
            continue
        for position, histogram_bin in enumerate(HISTOGRAM_BINS):
            if histogram_bin.contains(diff):
                counts[position] += 1
                break
    return [
        BinCount(b.label, b.low, b.high, count, b.tone)
        for b, count in zip(HISTOGRAM_BINS, counts, strict=True)
    ]
