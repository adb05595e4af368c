"""Tests for filesystem module."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import MockFileSystem

from tma_insights.filesystem import RealFileSystem


class TestMockFileSystem:
    """Tests for the in-memory double used by storage tests."""

    def test_initial_state_empty(self) -> None:
        """Verifies new MockFileSystem has no files or directories.

        Business context:
        Test isolation requires clean slate. Each test starts fresh
        without artifacts from previous tests.

        Arrangement:
        Create a MockFileSystem.

        Action:
        List files and check a path.

        Assertion Strategy:
        Validates nothing exists.
        """
        fs = MockFileSystem()

        assert fs.list_files() == []
        assert not fs.exists("/data")

    def test_write_creates_parents(self) -> None:
        fs = MockFileSystem()

        fs.write_text("/data/day/tma.json", "{}")

        assert fs.is_file("/data/day/tma.json")
        assert fs.is_dir("/data")
        assert fs.is_dir("/data/day")

    def test_makedirs_exist_ok(self) -> None:
        fs = MockFileSystem()
        fs.makedirs("/a/b")

        fs.makedirs("/a/b", exist_ok=True)
        with pytest.raises(OSError, match="Directory exists"):
            fs.makedirs("/a/b")

    def test_makedirs_over_file_raises(self) -> None:
        fs = MockFileSystem()
        fs.set_file("/a", "x")

        with pytest.raises(OSError, match="is a file"):
            fs.makedirs("/a", exist_ok=True)

    def test_read_missing_raises_file_not_found(self) -> None:
        with pytest.raises(FileNotFoundError):
            MockFileSystem().read_text("/nope.json")

    def test_broken_and_read_only(self) -> None:
        fs = MockFileSystem()
        fs.set_file("/x.json", "{}")
        fs.set_broken("/x.json")
        fs.set_read_only("/y.json")

        with pytest.raises(OSError, match="I/O error"):
            fs.read_text("/x.json")
        with pytest.raises(PermissionError):
            fs.write_text("/y.json", "{}")

    def test_get_file_never_raises(self) -> None:
        assert MockFileSystem().get_file("/missing") is None


class TestRealFileSystem:
    """Test suite for RealFileSystem against a temporary directory.

    Categories:
    1. Path checks - exists, is_file (1 test)
    2. Directories - makedirs (1 test)
    3. Text I/O - round trip with non-ASCII, missing file (2 tests)
    """

    def test_exists_and_is_file(self, tmp_path: Path) -> None:
        fs = RealFileSystem()
        target = tmp_path / "day.json"
        target.write_text("{}", encoding="utf-8")

        assert fs.exists(str(target))
        assert fs.is_file(str(target))
        assert fs.exists(str(tmp_path))
        assert not fs.is_file(str(tmp_path))
        assert not fs.exists(str(tmp_path / "other.json"))

    def test_makedirs(self, tmp_path: Path) -> None:
        fs = RealFileSystem()
        nested = tmp_path / "exports" / "2026"

        fs.makedirs(str(nested))
        fs.makedirs(str(nested), exist_ok=True)

        assert nested.is_dir()
        with pytest.raises(FileExistsError):
            fs.makedirs(str(nested))

    def test_write_then_read_utf8(self, tmp_path: Path) -> None:
        """Verifies text written with accents reads back unchanged.

        Business context:
        Item names like "Média" and types like "padrão" are stored as-is
        in the export document.

        Arrangement:
        RealFileSystem and a path under tmp_path.

        Action:
        write_text() then read_text().

        Assertion Strategy:
        Validates the exact content is returned.
        """
        fs = RealFileSystem()
        path = str(tmp_path / "day.json")

        fs.write_text(path, '{"item": "Média", "type": "padrão"}')

        assert fs.read_text(path) == '{"item": "Média", "type": "padrão"}'

    def test_read_missing_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            RealFileSystem().read_text(str(tmp_path / "missing.json"))
