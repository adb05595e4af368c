"""
Data models for TMA Insights.

PURPOSE: Type-safe value objects for the dataset snapshot and engine outputs.
AI CONTEXT: These models define the JSON schema shared with the import/export path.

MODEL HIERARCHY:
- DatasetSnapshot: One day of data (balance, transactions, lunch, settings)
- TransactionRecord: One timed piece of work (item, type, TMA, time spent, difference)
- PausedWorkEntry: Work put on hold, keyed by account in a PausedWorkMap
- LunchWindow: Optional lunch break in seconds since midnight
- StatsSummary: Aggregate counters for a transaction list
- Award: One achievement card, unlocked or locked

SERIALIZATION:
to_dict() produces the camelCase JSON names the export document uses.
from_dict() coerces untrusted JSON and never raises; collection-level
validation (dropping invalid entries) lives in normalizer.py.

ORDERING:
DatasetSnapshot.transactions is newest-first, as stored by the main app.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .config import Config
from .timeutils import ParsedTimestamp, parse_timestamp, to_finite, to_number

__all__ = [
    "TransactionRecord",
    "PausedWorkEntry",
    "PausedWorkMap",
    "LunchWindow",
    "DatasetSnapshot",
    "StatsSummary",
    "Award",
]


def _text(value: Any) -> str:
    """JSON value -> str, treating None/False/"" as empty."""
    if value is None or value is False:
        return ""
    return str(value)


def _non_negative_int(value: Any) -> int:
    return max(0, int(to_number(value)))


@dataclass(frozen=True)
class TransactionRecord:
    """
    One registered transaction.

    FIELDS:
    - item: Label of the work item (e.g. "Complexa")
    - type: Label of the work type; "retorno" marks a return
    - tma: Target seconds
    - time_spent: Actual seconds
    - difference: Signed seconds (time_spent - tma); negative is favorable.
      The stored value is authoritative and is never re-derived. None when
      the stored value is not a finite number.
    - timestamp: Raw "when" text, parsed on demand
    """

    item: str
    type: str
    tma: int = 0
    time_spent: int = 0
    difference: float | None = None
    timestamp: str = ""
    source: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TransactionRecord:
        """
        Build a record from a stored JSON object.

        Unparseable numbers coerce to 0 (tma, timeSpent) or None
        (difference); missing strings become "".

        Example:
            >>> tx = TransactionRecord.from_dict({"item": "Simples", "difference": "-12"})
            >>> tx.difference
            -12.0
        """
        return cls(
            item=_text(data.get("item")),
            type=_text(data.get("type")),
            tma=_non_negative_int(data.get("tma")),
            time_spent=_non_negative_int(data.get("timeSpent")),
            difference=to_finite(data.get("difference")),
            timestamp=_text(data.get("timestamp")),
            source=_text(data.get("source")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "item": self.item,
            "type": self.type,
            "tma": self.tma,
            "timeSpent": self.time_spent,
            "difference": self.difference,
            "timestamp": self.timestamp,
        }
        if self.source:
            data["source"] = self.source
        return data

    @property
    def diff_or_zero(self) -> float:
        """Difference with a missing value read as 0."""
        return self.difference if self.difference is not None else 0.0

    @property
    def is_return(self) -> bool:
        return self.type.lower() == Config.RETURN_TYPE

    @property
    def is_complex(self) -> bool:
        return self.item == Config.COMPLEX_ITEM

    @property
    def label(self) -> str:
        """Display label "item • type" with "—" for blanks."""
        return f"{self.item or '—'} • {self.type or '—'}"

    def parsed_time(self) -> ParsedTimestamp:
        return parse_timestamp(self.timestamp)


@dataclass(frozen=True)
class PausedWorkEntry:
    """
    Work put on hold with time already accumulated.

    VALIDITY:
    Entries with an empty item or type, or with zero accumulated seconds,
    are invalid and dropped by the normalizer.
    """

    id: str
    item: str
    type: str
    tma: float = 0.0
    accumulated_seconds: int = 0
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PausedWorkEntry:
        return cls(
            id=_text(data.get("id")),
            item=_text(data.get("item")),
            type=_text(data.get("type")),
            tma=to_number(data.get("tma")),
            accumulated_seconds=_non_negative_int(data.get("accumulatedSeconds")),
            updated_at=_text(data.get("updatedAtIso")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "item": self.item,
            "type": self.type,
            "tma": self.tma,
            "accumulatedSeconds": self.accumulated_seconds,
            "updatedAtIso": self.updated_at,
        }

    @property
    def is_valid(self) -> bool:
        return bool(self.item and self.type and self.accumulated_seconds > 0)


PausedWorkMap = dict[str, list[PausedWorkEntry]]


@dataclass(frozen=True)
class LunchWindow:
    """
    Lunch break in seconds since midnight.

    A window is configured only when both ends are finite numbers and
    start != end. A window with start > end wraps past midnight.
    """

    start: float | None = None
    end: float | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LunchWindow:
        """Only real numbers count as bounds; strings are not coerced."""
        return cls(start=_strict_number(data.get("start")), end=_strict_number(data.get("end")))

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start, "end": self.end}

    @property
    def is_configured(self) -> bool:
        return self.start is not None and self.end is not None and self.start != self.end

    def contains(self, seconds: float) -> bool:
        """
        Check whether a seconds-of-day value falls inside the window.

        Both ends are inclusive. For start > end the window wraps midnight.

        Example:
            >>> LunchWindow(43200, 46800).contains(45000)
            True
            >>> LunchWindow(82800, 3600).contains(1800)
            True
        """
        if self.start is None or self.end is None:
            return False
        if self.start < self.end:
            return self.start <= seconds <= self.end
        return seconds >= self.start or seconds <= self.end


def _strict_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return to_finite(value)


@dataclass(frozen=True)
class DatasetSnapshot:
    """
    Immutable input to the whole engine: one user's single day.

    balance_seconds is the authoritative running total. It may differ from
    the sum of transaction differences when the balance was adjusted
    externally; the engine only falls back to the sum when the balance is
    not a finite number.

    Display settings (shift start, showComplexa, dark theme) are carried
    through untouched for the export document.
    """

    balance_seconds: float = 0.0
    transactions: tuple[TransactionRecord, ...] = ()
    lunch: LunchWindow | None = None
    shift_start_seconds: int = 0
    show_complexa: bool = False
    paused_work: PausedWorkMap = field(default_factory=dict)
    dark_theme_enabled: bool = False

    @property
    def transactions_oldest_first(self) -> list[TransactionRecord]:
        return list(reversed(self.transactions))

    @property
    def paused_entries(self) -> list[PausedWorkEntry]:
        return [entry for entries in self.paused_work.values() for entry in entries]

    def to_export_dict(self, exported_at: str | None = None) -> dict[str, Any]:
        """
        Serialize to the export document.

        Field names are fixed for round-trip compatibility with the import
        path: balanceSeconds, transactions, lunch, shiftStartSeconds,
        showComplexa, pausedWork.

        Args:
            exported_at: Optional ISO timestamp stored as exportedAtIso.

        Returns:
            JSON-compatible dict.
        """
        document: dict[str, Any] = {}
        if exported_at:
            document["exportedAtIso"] = exported_at
        document.update(
            {
                "balanceSeconds": self.balance_seconds,
                "transactions": [tx.to_dict() for tx in self.transactions],
                "lunch": self.lunch.to_dict() if self.lunch else None,
                "shiftStartSeconds": self.shift_start_seconds,
                "showComplexa": self.show_complexa,
                "pausedWork": {
                    key: [entry.to_dict() for entry in entries]
                    for key, entries in self.paused_work.items()
                },
            }
        )
        return document


@dataclass(frozen=True)
class StatsSummary:
    """Aggregate counters for a transaction list."""

    count: int = 0
    sum_difference: float = 0.0
    average_difference: int = 0
    sum_time_spent: int = 0
    top_items: list[tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "sumDifference": self.sum_difference,
            "averageDifference": self.average_difference,
            "sumTimeSpent": self.sum_time_spent,
            "topItems": [{"item": item, "count": count} for item, count in self.top_items],
        }


@dataclass(frozen=True)
class Award:
    """
    One achievement card.

    Locked awards carry a hint in short_description ("Bloqueado — ...") and
    the unlock conditions plus current progress in detailed_explanation.
    """

    key: str
    icon: str
    title: str
    short_description: str
    detailed_explanation: str
    locked: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "icon": self.icon,
            "title": self.title,
            "shortDescription": self.short_description,
            "detailedExplanation": self.detailed_explanation,
            "locked": self.locked,
        }
