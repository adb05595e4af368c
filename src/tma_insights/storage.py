"""
Dataset storage for TMA Insights.

PURPOSE: Read dataset documents from disk and write export documents back.
AI CONTEXT: The only module (with the CLI) that touches files or the clock.

DOCUMENT SHAPES ACCEPTED:
- Export document: {"balanceSeconds", "transactions", "lunch", ...}
- Bare transaction list: [{"item", "type", "tma", ...}, ...]

ERROR HANDLING STRATEGY:
- load(): File not found / JSON corruption / I/O error -> log, empty snapshot
- load_strict(): same conditions raise DatasetImportError (user-facing import)
- save_export(): write failure -> log, return False

USAGE:
    store = DatasetStore("tma_dataset.json")
    snapshot = store.load()
    store.save_export(snapshot, "TMA_Compensator_2026-10-17.json")
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from .config import Config
from .filesystem import RealFileSystem
from .models import DatasetSnapshot
from .normalizer import normalize_dataset, normalize_transactions
from .timeutils import round_half_up

if TYPE_CHECKING:
    from .filesystem import FileSystem

logger = logging.getLogger(__name__)

__all__ = ["DatasetImportError", "DatasetStore", "snapshot_from_document"]


class DatasetImportError(Exception):
    """Raised when a dataset file cannot be imported at all."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not import {path}: {reason}")


def snapshot_from_document(document: Any) -> DatasetSnapshot | None:
    """
    Build a snapshot from a parsed JSON document.

    A bare list is read as transactions with the balance set to the sum of
    their differences. Returns None for anything that is neither an object
    nor a list.
    """
    if isinstance(document, Mapping):
        return normalize_dataset(document)
    if isinstance(document, list):
        transactions = tuple(normalize_transactions(document))
        balance = round_half_up(sum(tx.diff_or_zero for tx in transactions))
        return DatasetSnapshot(balance_seconds=balance, transactions=transactions)
    return None


class DatasetStore:
    """
    JSON dataset reader/writer with logged, non-fatal failures.

    DESIGN PRINCIPLES:
    1. Fail-safe: load() always returns a usable snapshot
    2. Explicit: load_strict() is for imports where the user must be told
    3. Testable: FileSystem can be injected for mocking

    THREAD SAFETY:
    Stateless apart from the configured path; safe to share between requests.
    """

    def __init__(
        self,
        data_file: str | None = None,
        filesystem: FileSystem | None = None,
    ) -> None:
        """
        Args:
            data_file: Dataset path. Default: Config.get_data_file()
            filesystem: FileSystem implementation. Default: RealFileSystem
        """
        self.data_file = data_file or Config.get_data_file()
        self._fs: FileSystem = filesystem or RealFileSystem()

    def _read_document(self, path: str) -> Any:
        content = self._fs.read_text(path)
        return json.loads(content)

    def load(self, path: str | None = None) -> DatasetSnapshot:
        """
        Load a dataset, falling back to an empty snapshot on any problem.

        Args:
            path: File to read. Default: the store's data_file.

        Returns:
            Normalized DatasetSnapshot; empty when the file is missing,
            unreadable or not a dataset.
        """
        file_path = path or self.data_file
        try:
            document = self._read_document(file_path)
        except FileNotFoundError:
            logger.info(f"No dataset at {file_path}, starting empty")
            return DatasetSnapshot()
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {file_path}: {e}")
            return DatasetSnapshot()
        except UnicodeDecodeError as e:
            logger.error(f"Invalid encoding in {file_path}: {e}")
            return DatasetSnapshot()
        except OSError as e:
            logger.error(f"Error reading {file_path}: {e}")
            return DatasetSnapshot()

        snapshot = snapshot_from_document(document)
        if snapshot is None:
            logger.error(f"Unexpected document type in {file_path}: {type(document).__name__}")
            return DatasetSnapshot()
        return snapshot

    def load_strict(self, path: str | None = None) -> DatasetSnapshot:
        """
        Load a dataset for an explicit import.

        Business context: When a user points the tool at a file they expect
        to see that file's data. Silently showing an empty day would look
        like their data was lost, so failures are raised instead.

        Args:
            path: File to read. Default: the store's data_file.

        Returns:
            Normalized DatasetSnapshot.

        Raises:
            DatasetImportError: File missing, unreadable, not UTF-8, not valid
                JSON, or not an object/list.
        """
        file_path = path or self.data_file
        try:
            document = self._read_document(file_path)
        except FileNotFoundError as e:
            raise DatasetImportError(file_path, "file not found") from e
        except json.JSONDecodeError as e:
            raise DatasetImportError(file_path, f"invalid JSON ({e.msg})") from e
        except UnicodeDecodeError as e:
            raise DatasetImportError(file_path, "not valid UTF-8") from e
        except OSError as e:
            raise DatasetImportError(file_path, str(e)) from e

        snapshot = snapshot_from_document(document)
        if snapshot is None:
            raise DatasetImportError(file_path, "expected a JSON object or list")
        logger.info(f"Imported {len(snapshot.transactions)} transactions from {file_path}")
        return snapshot

    @staticmethod
    def export_document(
        snapshot: DatasetSnapshot, now: datetime | None = None
    ) -> dict[str, Any]:
        """Export document stamped with exportedAtIso (UTC, millisecond precision)."""
        moment = (now or datetime.now(UTC)).astimezone(UTC)
        stamp = moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return snapshot.to_export_dict(exported_at=stamp)

    @staticmethod
    def export_filename(now: datetime | None = None) -> str:
        """Default export file name, e.g. TMA_Compensator_2026-10-17.json (UTC date)."""
        moment = (now or datetime.now(UTC)).astimezone(UTC)
        return Config.EXPORT_FILENAME_TEMPLATE.format(date=moment.date().isoformat())

    def save_export(
        self,
        snapshot: DatasetSnapshot,
        path: str | None = None,
        now: datetime | None = None,
    ) -> bool:
        """
        Write the export document for a snapshot.

        Args:
            snapshot: Data to export.
            path: Destination. Default: export_filename() next to data_file.
            now: Export timestamp. Default: current UTC time.

        Returns:
            True on success, False on failure (logged).

        FORMATTING:
        - 2-space indent for readability
        - UTF-8, non-ASCII kept as-is (item labels are Portuguese)
        """
        target = path or os.path.join(
            os.path.dirname(self.data_file) or ".", self.export_filename(now)
        )
        try:
            directory = os.path.dirname(target)
            if directory and not self._fs.exists(directory):
                self._fs.makedirs(directory, exist_ok=True)
            content = json.dumps(self.export_document(snapshot, now), indent=2, ensure_ascii=False)
            self._fs.write_text(target, content)
        except OSError as e:
            logger.error(f"Error writing {target}: {e}")
            return False
        logger.info(f"Exported {len(snapshot.transactions)} transactions to {target}")
        return True
