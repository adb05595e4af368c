"""
Time utilities for TMA Insights.

PURPOSE: Pure numeric coercion, duration formatting and timestamp parsing.
AI CONTEXT: No I/O. Every function tolerates garbage input and returns a neutral value.

FORMATS:
- seconds_to_time:        "-01:02:03"   (HH:MM:SS, rounded, signed only when negative)
- format_signed:          "+00:01:05"   (explicit sign, "" for zero)
- seconds_to_short:       "2m05s" / "45s" (absolute value)
- format_signed_compact:  "-2m05s"
- seconds_to_human:       "45m" / "2h 05m"
- clock_from_seconds:     "13:30" (seconds since midnight, wraps at 24h)

TIMESTAMP PARSING:
Two explicit stages, returning a tagged ParsedTimestamp instead of raising:
1. ISO 8601 ("Z" accepted), then RFC 2822
2. Regional "dd/mm/yyyy, hh:mm[:ss]" (what toLocaleString() writes in pt-BR)
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any

from .config import Config

__all__ = [
    "ParsedTimestamp",
    "to_number",
    "to_finite",
    "round_half_up",
    "clamp",
    "seconds_to_time",
    "format_signed",
    "seconds_to_short",
    "format_signed_compact",
    "seconds_to_human",
    "clock_from_seconds",
    "parse_timestamp",
    "seconds_of_day",
]

_REGIONAL_PATTERN = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{4})(?:,|\s)+(\d{1,2}):(\d{2})(?::(\d{2}))?"
)


def to_finite(value: Any) -> float | None:
    """
    Coerce a JSON-ish value to a finite float.

    Mirrors how the report page reads numbers: booleans count as 0/1, blank
    strings as 0, and anything that is not a finite number becomes None.

    Args:
        value: Any value read from a stored transaction or setting.

    Returns:
        Finite float, or None when the value is missing, non-numeric,
        NaN or infinite.

    Example:
        >>> to_finite("42")
        42.0
        >>> to_finite("abc") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, int | float):
        try:
            number = float(value)
        except OverflowError:
            # int literal beyond float range
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce to a finite float, substituting default for anything unusable."""
    number = to_finite(value)
    return default if number is None else number


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves toward +infinity.

    Python's round() uses banker's rounding; report numbers are rounded the
    way a browser does it (round(-2.5) == -2, round(2.5) == 3). Non-finite
    input (a sum that overflowed) rounds to 0.
    """
    if not math.isfinite(value):
        return 0
    return math.floor(value + 0.5)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def seconds_to_time(seconds: Any) -> str:
    """
    Format seconds as HH:MM:SS, prefixed with "-" when negative.

    Args:
        seconds: Duration in seconds; rounded before formatting.

    Returns:
        String like "01:02:03" or "-00:00:45".

    Example:
        >>> seconds_to_time(3723)
        '01:02:03'
    """
    total = round_half_up(to_number(seconds))
    sign = "-" if total < 0 else ""
    absolute = abs(total)
    hours = absolute // 3600
    minutes = (absolute % 3600) // 60
    secs = absolute % 60
    return f"{sign}{hours:02d}:{minutes:02d}:{secs:02d}"


def format_signed(seconds: Any) -> str:
    """Format as HH:MM:SS with an explicit "+" or "-" (no sign for zero)."""
    total = round_half_up(to_number(seconds))
    return _sign(total) + seconds_to_time(abs(total))


def seconds_to_short(seconds: Any) -> str:
    """
    Format the absolute value compactly.

    Returns:
        "Zs" under a minute, "YmZZs" otherwise. Example: 125 -> "2m05s".
    """
    absolute = max(0, math.floor(abs(to_number(seconds))))
    minutes = absolute // 60
    secs = absolute % 60
    if minutes <= 0:
        return f"{secs}s"
    return f"{minutes}m{secs:02d}s"


def format_signed_compact(seconds: Any) -> str:
    """Compact format with an explicit sign, e.g. "+1m30s" or "-45s"."""
    total = round_half_up(to_number(seconds))
    return _sign(total) + seconds_to_short(abs(total))


def seconds_to_human(seconds: Any) -> str:
    """
    Format a non-negative duration as "Mm" or "Hh MMm".

    Negative input clamps to zero.

    Example:
        >>> seconds_to_human(7500)
        '2h 05m'
    """
    absolute = max(0, math.floor(to_number(seconds)))
    hours = absolute // 3600
    minutes = (absolute % 3600) // 60
    if hours <= 0:
        return f"{minutes}m"
    return f"{hours}h {minutes:02d}m"


def clock_from_seconds(seconds: Any) -> str:
    """Seconds since midnight -> "HH:MM", hours wrapping modulo 24."""
    total = max(0, math.floor(to_number(seconds)))
    hours = (total // 3600) % 24
    minutes = (total % 3600) // 60
    return f"{hours:02d}:{minutes:02d}"


def _sign(value: float) -> str:
    if value > 0:
        return "+"
    if value < 0:
        return "-"
    return ""


@dataclass(frozen=True)
class ParsedTimestamp:
    """
    Tagged result of timestamp parsing.

    Downstream code branches on is_valid instead of catching exceptions.
    An unparseable timestamp means "no valid time" (unknown daypart,
    excluded from time-ordered analyses), never a fatal error.
    """

    value: datetime | None = None

    @classmethod
    def unparseable(cls) -> ParsedTimestamp:
        return cls(None)

    @property
    def is_valid(self) -> bool:
        return self.value is not None

    def local(self) -> datetime | None:
        """
        Wall-clock datetime in the configured report timezone.

        Naive values (the regional format, or ISO text without an offset) are
        already local. Aware values are converted with Config.get_timezone();
        None there means the system's local zone.
        """
        if self.value is None:
            return None
        if self.value.tzinfo is None:
            return self.value
        return self.value.astimezone(Config.get_timezone())

    def epoch_seconds(self) -> float | None:
        """Absolute ordering key; naive values are interpreted as local time."""
        if self.value is None:
            return None
        return self.value.timestamp()


def parse_timestamp(value: Any) -> ParsedTimestamp:
    """
    Parse a stored transaction timestamp.

    Stage 1 tries ISO 8601 and RFC 2822. Stage 2 tries the regional
    "dd/mm/yyyy, hh:mm[:ss]" pattern. Numbers are treated as epoch
    milliseconds.

    Args:
        value: Raw timestamp (str, datetime, epoch ms number, or junk).

    Returns:
        ParsedTimestamp; is_valid is False when nothing matched.

    Example:
        >>> parse_timestamp("17/10/2026, 09:15").value.hour
        9
        >>> parse_timestamp("yesterday").is_valid
        False
    """
    if isinstance(value, datetime):
        return _checked(value)
    if value is None or isinstance(value, bool):
        return ParsedTimestamp.unparseable()
    if isinstance(value, int | float):
        try:
            return _checked(datetime.fromtimestamp(value / 1000.0, UTC))
        except (OverflowError, OSError, ValueError):
            return ParsedTimestamp.unparseable()

    text = str(value).strip()
    if not text:
        return ParsedTimestamp.unparseable()

    parsed = _parse_standard(text)
    if parsed is None:
        parsed = _parse_regional(text)
    return _checked(parsed)


def _checked(moment: datetime | None) -> ParsedTimestamp:
    """
    Keep a parsed moment only if it survives every conversion the engine does.

    Dates at the edges of the datetime range (year 1, year 9999 with an
    offset) parse fine but overflow in astimezone() or timestamp().
    """
    if moment is None:
        return ParsedTimestamp.unparseable()
    try:
        if moment.tzinfo is not None:
            moment.astimezone(UTC)
            moment.astimezone(Config.get_timezone())
        moment.timestamp()
    except (OverflowError, OSError, ValueError):
        return ParsedTimestamp.unparseable()
    return ParsedTimestamp(moment)


def _parse_standard(text: str) -> datetime | None:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None


def _parse_regional(text: str) -> datetime | None:
    match = _REGIONAL_PATTERN.match(text)
    if not match:
        return None
    day, month, year, hour, minute = (int(g) for g in match.groups()[:5])
    second = int(match.group(6) or 0)
    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        return None


def seconds_of_day(moment: datetime) -> int:
    return moment.hour * 3600 + moment.minute * 60 + moment.second
