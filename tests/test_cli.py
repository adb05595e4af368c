"""Tests for CLI module."""

from __future__ import annotations

import json
import sys
from io import StringIO
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from tma_insights.models import DatasetSnapshot


def _write_dataset(path: Path, snapshot: DatasetSnapshot) -> str:
    path.write_text(json.dumps(snapshot.to_export_dict()), encoding="utf-8")
    return str(path)


class TestCLIParsing:
    """Tests for CLI argument parsing."""

    def test_main_returns_int(self) -> None:
        """Verifies main() returns integer exit code for shell compatibility.

        Business context:
        Exit codes enable automation. Scripts that archive daily reports
        check the exit code to know whether the file was readable.

        Arrangement:
        1. Mock sys.argv with just the program name.
        2. Mock run_report to prevent reading a real dataset.

        Action:
        Call main() and capture return value.

        Assertion Strategy:
        Validates return is int type and equals 0 (success).
        """
        from tma_insights.cli import main

        with (
            patch.object(sys, "argv", ["tma-insights"]),
            patch("tma_insights.cli.run_report", return_value=0),
        ):
            result = main()

        assert isinstance(result, int)
        assert result == 0

    def test_version_flag(self) -> None:
        from tma_insights.cli import main

        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0

    def test_no_command_defaults_to_report(self) -> None:
        from tma_insights.cli import main

        with patch("tma_insights.cli.run_report", return_value=0) as mock_report:
            main([])

        mock_report.assert_called_once_with()

    def test_report_command(self) -> None:
        from tma_insights.cli import main

        with patch("tma_insights.cli.run_report", return_value=0) as mock_report:
            main(["report", "day.json", "--show-locked"])

        mock_report.assert_called_once_with("day.json", show_locked=True)

    def test_report_exit_code_propagates(self) -> None:
        from tma_insights.cli import main

        with patch("tma_insights.cli.run_report", return_value=1):
            assert main(["report", "missing.json"]) == 1

    def test_dashboard_command(self) -> None:
        from tma_insights.cli import main

        with patch("tma_insights.cli.run_dashboard") as mock_dashboard:
            result = main(["dashboard"])

        assert result == 0
        mock_dashboard.assert_called_once_with(host="127.0.0.1", port=8000, data_file=None)

    def test_dashboard_with_host_port_and_data(self) -> None:
        """Verifies dashboard command passes custom options through.

        Business context:
        Users serving the dashboard on a LAN need to bind another
        interface and point it at the day's file.

        Arrangement:
        Mock run_dashboard.

        Action:
        main() with --host, --port and --data.

        Assertion Strategy:
        Validates run_dashboard receives the parsed values with the port
        converted to int.
        """
        from tma_insights.cli import main

        with patch("tma_insights.cli.run_dashboard") as mock_dashboard:
            main(["dashboard", "--host", "0.0.0.0", "--port", "9000", "--data", "day.json"])

        mock_dashboard.assert_called_once_with(host="0.0.0.0", port=9000, data_file="day.json")

    def test_export_command(self) -> None:
        from tma_insights.cli import main

        with patch("tma_insights.cli.run_export", return_value=0) as mock_export:
            main(["export", "in.json", "out.json"])

        mock_export.assert_called_once_with("in.json", "out.json")

    def test_export_requires_source(self) -> None:
        from tma_insights.cli import main

        with pytest.raises(SystemExit) as exc_info:
            main(["export"])

        assert exc_info.value.code == 2


class TestRunReport:
    """Tests for run_report function."""

    def test_run_report_prints_output(
        self, tmp_path: Path, sample_snapshot: DatasetSnapshot, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Verifies run_report prints the report for an explicit file.

        Business context:
        `tma-insights report FILE` is how an exported day gets reviewed.
        The output must include recognizable sections.

        Arrangement:
        Write the sample day as an export document under tmp_path.

        Action:
        Call run_report with the file path.

        Assertion Strategy:
        Validates exit code 0 and the report header and balance line.
        """
        from tma_insights.cli import run_report

        path = _write_dataset(tmp_path / "day.json", sample_snapshot)

        assert run_report(path) == 0

        output = capsys.readouterr().out
        assert "TMA INSIGHTS - DAILY REPORT" in output
        assert "Saldo: 00:01:00" in output

    def test_run_report_show_locked(
        self, tmp_path: Path, sample_snapshot: DatasetSnapshot, capsys: pytest.CaptureFixture[str]
    ) -> None:
        from tma_insights.cli import run_report

        path = _write_dataset(tmp_path / "day.json", sample_snapshot)

        run_report(path, show_locked=True)

        assert "🔒" in capsys.readouterr().out

    def test_run_report_missing_file_fails(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        from tma_insights.cli import run_report

        assert run_report(str(tmp_path / "nope.json")) == 1
        assert capsys.readouterr().out == ""

    def test_run_report_corrupt_file_fails(self, tmp_path: Path) -> None:
        from tma_insights.cli import run_report

        path = tmp_path / "bad.json"
        path.write_text("{oops", encoding="utf-8")

        assert run_report(str(path)) == 1

    def test_run_report_default_dataset_missing_is_empty_day(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Without a path a missing default file is an empty day, not an error."""
        from tma_insights.cli import run_report
        from tma_insights.config import Config

        Config.set_test_overrides(data_file=str(tmp_path / "tma_dataset.json"))

        assert run_report() == 0
        assert "Contas: 0" in capsys.readouterr().out

    def test_run_report_with_injected_dependencies(self) -> None:
        """Verifies run_report accepts injected store and engine.

        Business context:
        DI enables isolated testing without touching real files.

        Arrangement:
        Create mock store and engine instances.

        Action:
        Call run_report with injected mocks and no path.

        Assertion Strategy:
        Validates the lenient load path was used and the engine output
        reached stdout.
        """
        from tma_insights.cli import run_report

        mock_store = MagicMock()
        mock_store.load.return_value = DatasetSnapshot()
        mock_engine = MagicMock()
        mock_engine.generate_summary_report.return_value = "Test Report"

        captured = StringIO()
        with patch.object(sys, "stdout", captured):
            result = run_report(store=mock_store, engine=mock_engine)

        assert result == 0
        mock_store.load.assert_called_once_with()
        mock_store.load_strict.assert_not_called()
        mock_engine.generate_summary_report.assert_called_once_with(
            DatasetSnapshot(), show_locked=False
        )
        assert "Test Report" in captured.getvalue()


class TestRunExport:
    """Tests for run_export function."""

    def test_export_to_destination(self, tmp_path: Path, sample_snapshot: DatasetSnapshot) -> None:
        from tma_insights.cli import run_export

        source = _write_dataset(tmp_path / "in.json", sample_snapshot)
        destination = tmp_path / "out" / "backup.json"

        assert run_export(source, str(destination)) == 0

        document = json.loads(destination.read_text(encoding="utf-8"))
        assert document["balanceSeconds"] == 60
        assert len(document["transactions"]) == 5
        assert "exportedAtIso" in document

    def test_export_default_name_next_to_source(self, tmp_path: Path) -> None:
        from tma_insights.cli import run_export

        source = tmp_path / "list.json"
        source.write_text(json.dumps([{"item": "A", "difference": 5}]), encoding="utf-8")

        assert run_export(str(source)) == 0

        exported = list(tmp_path.glob("TMA_Compensator_*.json"))
        assert len(exported) == 1
        assert json.loads(exported[0].read_text(encoding="utf-8"))["balanceSeconds"] == 5

    def test_export_missing_source_fails(self, tmp_path: Path) -> None:
        from tma_insights.cli import run_export

        assert run_export(str(tmp_path / "nope.json"), str(tmp_path / "out.json")) == 1
        assert not (tmp_path / "out.json").exists()

    def test_export_write_failure(self, sample_snapshot: DatasetSnapshot) -> None:
        from tma_insights.cli import run_export

        mock_store = MagicMock()
        mock_store.load_strict.return_value = sample_snapshot
        mock_store.save_export.return_value = False

        assert run_export("in.json", "/read-only/out.json", store=mock_store) == 1


class TestRunDashboard:
    """Tests for run_dashboard function."""

    def test_run_dashboard_calls_web_module(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Verifies run_dashboard delegates to web.run_dashboard.

        Business context:
        Separation of concerns: CLI handles arguments, web module
        handles actual server startup.

        Arrangement:
        Mock web.run_dashboard to capture invocation.

        Action:
        Call run_dashboard function.

        Assertion Strategy:
        Validates web.run_dashboard called with defaults:
        host='127.0.0.1', port=8000.
        """
        monkeypatch.delenv("TMA_INSIGHTS_DATA", raising=False)

        with patch("tma_insights.web.run_dashboard") as mock_run:
            from tma_insights.cli import run_dashboard

            run_dashboard()

        mock_run.assert_called_once_with(host="127.0.0.1", port=8000)

    def test_run_dashboard_exports_data_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The uvicorn factory reads the dataset path from the environment."""
        import os

        monkeypatch.delenv("TMA_INSIGHTS_DATA", raising=False)

        with patch("tma_insights.web.run_dashboard"):
            from tma_insights.cli import run_dashboard

            run_dashboard(data_file="/srv/day.json")

        assert os.environ["TMA_INSIGHTS_DATA"] == "/srv/day.json"


class TestMainModule:
    """Tests for __main__.py entry point."""

    def test_main_module_imports(self) -> None:
        """Verifies __main__ module imports without errors.

        Business context:
        'python -m tma_insights' requires __main__.py. Import must
        succeed for module execution.
        """
        import tma_insights.__main__  # noqa: F401

    def test_main_module_has_main(self) -> None:
        from tma_insights.__main__ import main

        assert callable(main)
