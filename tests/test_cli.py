"""Tests for the command-line entry point and logging setup."""

import logging
from pathlib import Path

import pytest

from modstudio.__main__ import build_parser, cmd_info, cmd_new, cmd_recent
from modstudio.settings import AppSettings
from modstudio.utils.logging_config import CSVFormatter, setup_logging


class TestCommands:
    """Test the new/info/recent commands."""

    def test_new_then_info(
        self, app_settings: AppSettings, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        target = tmp_path / "pack"

        assert cmd_new(app_settings, str(target), "R97 Pack") == 0
        assert (tmp_path / "pack.r5vproj").exists()

        assert cmd_info(app_settings, str(tmp_path / "pack.r5vproj")) == 0
        out = capsys.readouterr().out
        assert "R97 Pack" in out
        assert "active: main.nut" in out

    def test_info_on_missing_file(self, app_settings: AppSettings, tmp_path: Path) -> None:
        assert cmd_info(app_settings, str(tmp_path / "missing.r5vproj")) == 1

    def test_recent_lists_created_projects(
        self, app_settings: AppSettings, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        cmd_new(app_settings, str(tmp_path / "a.r5vproj"), "Alpha")
        capsys.readouterr()

        assert cmd_recent(app_settings, clear=False) == 0
        assert "Alpha" in capsys.readouterr().out

        assert cmd_recent(app_settings, clear=True) == 0
        assert app_settings.recent_documents.entries == []

    def test_parser_requires_command(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestLogging:
    """Test logging configuration."""

    def test_setup_logging_configures_app_logger(self, app_settings: AppSettings) -> None:
        setup_logging(app_settings)
        assert logging.getLogger("modstudio").level == logging.DEBUG

    def test_csv_formatter_escapes_quotes(self) -> None:
        record = logging.LogRecord(
            "modstudio.test", logging.INFO, __file__, 10, 'saved "mod"', None, None
        )
        line = CSVFormatter().format(record)
        assert '"saved ""mod"""' in line
        assert line.count(";") == 5
