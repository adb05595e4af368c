"""
Pytest configuration and shared fixtures for TMA Insights tests.

This module contains:
- MockFileSystem: In-memory filesystem for DatasetStore tests
- make_tx / make_snapshot: Builders for transactions and day snapshots
- Shared fixtures available to all test modules
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

import pytest

from tma_insights.config import Config
from tma_insights.models import DatasetSnapshot, LunchWindow, TransactionRecord


class MockFileSystem:
    """
    In-memory file system for testing.

    Simulates the handful of operations DatasetStore uses:
    - _files: dict mapping path -> content (str)
    - _dirs: set of directory paths
    - _read_only: paths whose writes fail with PermissionError
    - _broken: paths whose reads fail with a generic OSError

    FEATURES:
    - No actual I/O operations
    - Easy to inspect what the store wrote
    - Can simulate unreadable and unwritable files
    """

    def __init__(self) -> None:
        """
        Initialize an empty mock file system.

        Business context: Dataset loading must be tested against missing,
        corrupt and unreadable files without touching the disk.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.list_files()
            []
        """
        self._files: dict[str, str] = {}
        self._dirs: set[str] = set()
        self._read_only: set[str] = set()
        self._broken: set[str] = set()

    def exists(self, path: str) -> bool:
        return path in self._files or path in self._dirs

    def is_file(self, path: str) -> bool:
        return path in self._files

    def is_dir(self, path: str) -> bool:
        return path in self._dirs

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create a mock directory and all of its parents.

        Raises:
            OSError: If the directory exists and exist_ok is False, or
                the path is an existing file.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.makedirs('/exports/2026', exist_ok=True)
            >>> fs.is_dir('/exports')
            True
        """
        if path in self._dirs:
            if not exist_ok:
                raise OSError(f"Directory exists: {path}")
            return
        if path in self._files:
            raise OSError(f"Path is a file, not directory: {path}")

        parts = path.rstrip("/").split("/")
        for i in range(1, len(parts) + 1):
            parent = "/".join(parts[:i])
            if parent:
                self._dirs.add(parent)

    def read_text(self, path: str, _encoding: str = "utf-8") -> str:
        """
        Read mock file contents.

        Raises:
            OSError: If the path was marked broken with set_broken().
            FileNotFoundError: If the path holds no file.
        """
        if path in self._broken:
            raise OSError(f"I/O error: {path}")
        if path not in self._files:
            raise FileNotFoundError(f"No such file: {path}")
        return self._files[path]

    def write_text(self, path: str, content: str, _encoding: str = "utf-8") -> None:
        """
        Write text to a mock file, creating parent directories.

        Raises:
            PermissionError: If the path was marked read-only.
        """
        if path in self._read_only:
            raise PermissionError(f"Permission denied: {path}")

        parent = "/".join(path.rstrip("/").split("/")[:-1])
        if parent and parent not in self._dirs:
            self.makedirs(parent, exist_ok=True)
        self._files[path] = content

    # =========================================================================
    # TEST HELPERS
    # =========================================================================

    def get_file(self, path: str) -> str | None:
        """File content, or None when the file doesn't exist. Never raises."""
        return self._files.get(path)

    def set_file(self, path: str, content: str) -> None:
        self.write_text(path, content)

    def set_read_only(self, path: str) -> None:
        """Make later writes to path raise PermissionError."""
        self._read_only.add(path)

    def set_broken(self, path: str) -> None:
        """Make later reads of path raise a generic OSError."""
        self._broken.add(path)

    def list_files(self) -> list[str]:
        """
        Sorted list of every file path.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.set_file('/data/b.json', '[]')
            >>> fs.set_file('/data/a.json', '{}')
            >>> fs.list_files()
            ['/data/a.json', '/data/b.json']
        """
        return sorted(self._files.keys())


def make_tx(
    difference: float | None = 0,
    *,
    item: str = "Simples",
    type: str = "padrão",  # noqa: A002
    tma: int = 600,
    time_spent: int | None = None,
    timestamp: str = "",
) -> TransactionRecord:
    """
    Build a TransactionRecord with sensible defaults.

    time_spent defaults to tma + difference so the record is internally
    consistent, but the stored difference stays authoritative either way.

    Example:
        >>> make_tx(-30, item="Complexa").time_spent
        570
    """
    if time_spent is None:
        time_spent = max(0, int(tma + (difference or 0)))
    return TransactionRecord(
        item=item,
        type=type,
        tma=tma,
        time_spent=time_spent,
        difference=difference,
        timestamp=timestamp,
    )


def make_snapshot(
    transactions: Sequence[TransactionRecord] = (),
    balance_seconds: float | None = None,
    lunch: LunchWindow | None = None,
    **kwargs: object,
) -> DatasetSnapshot:
    """
    Build a DatasetSnapshot from newest-first transactions.

    balance_seconds defaults to the sum of the differences, which is what
    the main app stores when nothing was adjusted by hand.
    """
    if balance_seconds is None:
        balance_seconds = sum(tx.diff_or_zero for tx in transactions)
    return DatasetSnapshot(
        balance_seconds=balance_seconds,
        transactions=tuple(transactions),
        lunch=lunch,
        **kwargs,  # type: ignore[arg-type]
    )


def timed_txs(diffs_oldest_first: Sequence[float], start_hour: int = 9) -> list[TransactionRecord]:
    """
    Transactions five minutes apart, returned newest first.

    Args:
        diffs_oldest_first: Differences in chronological order.
        start_hour: Local hour of the first transaction.
    """
    records = []
    for i, diff in enumerate(diffs_oldest_first):
        minutes = start_hour * 60 + i * 5
        stamp = f"2026-10-17T{minutes // 60:02d}:{minutes % 60:02d}:00"
        records.append(make_tx(diff, timestamp=stamp))
    return list(reversed(records))


@pytest.fixture(autouse=True)
def reset_config_overrides() -> Iterator[None]:
    """
    Clear Config test overrides after every test.

    Business context: Timezone and data-file overrides are class-level
    state; one test leaking them would change every later daypart and
    clock-time assertion.
    """
    yield
    Config.reset_test_overrides()


@pytest.fixture
def mock_fs() -> MockFileSystem:
    """
    Create a fresh MockFileSystem for each test.

    Example:
        >>> def test_load(mock_fs):
        ...     mock_fs.set_file('/data/day.json', '{"transactions": []}')
    """
    return MockFileSystem()


@pytest.fixture
def sample_snapshot() -> DatasetSnapshot:
    """
    A realistic day: morning and afternoon work, one return, one Complexa.

    Transactions (oldest first):
    - 09:00 Simples  -30s
    - 09:20 Simples  +10s
    - 10:05 Complexa +95s
    - 14:00 Simples   0s   (retorno)
    - 14:30 Média    -15s

    Returns:
        DatasetSnapshot with balance 60s (sum of differences), a lunch
        window 12:00-13:00 and one paused entry.
    """
    from tma_insights.models import PausedWorkEntry

    oldest_first = [
        make_tx(-30, timestamp="2026-10-17T09:00:00"),
        make_tx(10, timestamp="2026-10-17T09:20:00"),
        make_tx(95, item="Complexa", tma=900, timestamp="2026-10-17T10:05:00"),
        make_tx(0, type="retorno", timestamp="2026-10-17T14:00:00"),
        make_tx(-15, item="Média", tma=720, timestamp="2026-10-17T14:30:00"),
    ]
    paused = {
        "acct-1": [
            PausedWorkEntry(
                id="p1",
                item="Complexa",
                type="padrão",
                tma=900,
                accumulated_seconds=240,
                updated_at="2026-10-17T11:00:00.000Z",
            )
        ]
    }
    return make_snapshot(
        list(reversed(oldest_first)),
        lunch=LunchWindow(12 * 3600, 13 * 3600),
        paused_work=paused,
    )
