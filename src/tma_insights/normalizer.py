"""
Record normalizer for TMA Insights.

PURPOSE: Turn externally-authored JSON into well-typed records.
AI CONTEXT: Never raises. Bad fields coerce to neutral values, bad entries are dropped.

COERCION RULES (same field names and rules as the main app's storage):
- Numbers: unparseable -> 0; tma/timeSpent/accumulatedSeconds clamp to >= 0
- difference: unparseable or non-finite -> None (treated as missing downstream)
- Strings: missing -> ""
- Timestamps: kept as text; parse failures surface later as "unparseable"

VALIDITY:
- Transactions: any JSON object is kept (empty labels display as "—")
- Paused work: entries need item, type and accumulatedSeconds > 0
- Lunch: configured only with two finite numeric bounds that differ

USAGE:
    snapshot = normalize_dataset(json.loads(text))
    records = normalize_transactions(raw_list)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .models import (
    DatasetSnapshot,
    LunchWindow,
    PausedWorkEntry,
    PausedWorkMap,
    TransactionRecord,
)
from .timeutils import round_half_up, to_number

__all__ = [
    "normalize",
    "normalize_dataset",
    "normalize_transaction",
    "normalize_transactions",
    "normalize_paused_work",
    "normalize_lunch",
]

_DATASET_KEYS = frozenset({"transactions", "balanceSeconds"})


def normalize_transaction(raw: Any) -> TransactionRecord | None:
    """
    Coerce one stored transaction.

    Args:
        raw: Value claiming to be a transaction object.

    Returns:
        TransactionRecord, or None when raw is not a JSON object.
    """
    if not isinstance(raw, Mapping):
        return None
    return TransactionRecord.from_dict(raw)


def normalize_transactions(raw: Any) -> list[TransactionRecord]:
    """
    Coerce a stored transaction list, preserving order (newest first).

    Non-list input yields an empty list; non-object entries are skipped.

    Example:
        >>> len(normalize_transactions([{"item": "A"}, "junk", None]))
        1
    """
    if not isinstance(raw, list | tuple):
        return []
    records = []
    for entry in raw:
        record = normalize_transaction(entry)
        if record is not None:
            records.append(record)
    return records


def _normalize_paused_entries(values: list[Any]) -> list[PausedWorkEntry]:
    entries = [PausedWorkEntry.from_dict(v) for v in values if v and isinstance(v, Mapping)]
    return [entry for entry in entries if entry.is_valid]


def normalize_paused_work(raw: Any) -> PausedWorkMap:
    """
    Coerce the paused-work store: account key -> list of entries.

    A single object stored under a key (older app versions) is read as a
    one-element list. Keys whose value is neither a list nor an object are
    dropped; so are empty keys.

    Args:
        raw: Value claiming to be the paused-work map.

    Returns:
        PausedWorkMap. Keys stay present even if all their entries were
        invalid.

    Example:
        >>> store = normalize_paused_work({"k": {"item": "A", "type": "b", "accumulatedSeconds": 30}})
        >>> store["k"][0].accumulated_seconds
        30
    """
    out: PausedWorkMap = {}
    if not isinstance(raw, Mapping):
        return out
    for key, value in raw.items():
        if not key:
            continue
        if isinstance(value, list):
            out[str(key)] = _normalize_paused_entries(value)
        elif isinstance(value, Mapping):
            out[str(key)] = _normalize_paused_entries([value])
    return out


def normalize_lunch(raw: Any) -> LunchWindow | None:
    """Coerce the lunch setting; anything but a JSON object means "no window"."""
    if not raw or not isinstance(raw, Mapping):
        return None
    return LunchWindow.from_dict(raw)


def normalize_dataset(raw: Any) -> DatasetSnapshot:
    """
    Build a DatasetSnapshot from an export/import document.

    Business context: This is the import path. A document exported from the
    dashboard (or from the main app) must come back as an equivalent
    snapshot: same transactions, same balance, same lunch window.

    Args:
        raw: Parsed JSON document. Non-objects yield an empty snapshot.

    Returns:
        DatasetSnapshot with balance and shift start rounded to whole seconds
        (unparseable -> 0).

    Example:
        >>> snap = normalize_dataset({"balanceSeconds": "90.4", "transactions": []})
        >>> snap.balance_seconds
        90
    """
    if not isinstance(raw, Mapping):
        return DatasetSnapshot()
    return DatasetSnapshot(
        balance_seconds=round_half_up(to_number(raw.get("balanceSeconds"))),
        transactions=tuple(normalize_transactions(raw.get("transactions"))),
        lunch=normalize_lunch(raw.get("lunch")),
        shift_start_seconds=round_half_up(to_number(raw.get("shiftStartSeconds"))),
        show_complexa=bool(raw.get("showComplexa")),
        paused_work=normalize_paused_work(raw.get("pausedWork")),
        dark_theme_enabled=bool(raw.get("darkThemeEnabled")),
    )


def normalize(raw: Any) -> list[TransactionRecord] | DatasetSnapshot | PausedWorkMap:
    """
    Normalize any of the three stored shapes.

    - list -> transactions
    - object with "transactions" or "balanceSeconds" -> DatasetSnapshot
    - any other object -> paused-work map
    - anything else -> empty transaction list
    """
    if isinstance(raw, list | tuple):
        return normalize_transactions(raw)
    if isinstance(raw, Mapping):
        if _DATASET_KEYS & set(raw.keys()):
            return normalize_dataset(raw)
        return normalize_paused_work(raw)
    return []
