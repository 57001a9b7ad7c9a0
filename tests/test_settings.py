"""Tests for QSettings-backed configuration."""

import logging
from pathlib import Path

import orjson
import pytest
from PySide6.QtCore import QSettings

from modstudio.settings import AppSettings, ConfigError, ConfigVersion
from modstudio.settings.logging import VALID_LEVELS, level_number
from modstudio.settings.paths import RECENT_DOCUMENTS_KEY


class TestSettingsInitialization:
    """Test settings initialization and basic operations."""

    def test_first_run_sets_version(self, app_settings: AppSettings) -> None:
        assert app_settings.version == ConfigVersion.CURRENT.value
        assert app_settings.is_first_run

    def test_set_first_run_complete(self, app_settings: AppSettings) -> None:
        app_settings.set_first_run_complete()
        assert not app_settings.is_first_run

    def test_validation_of_defaults(self, app_settings: AppSettings) -> None:
        result = app_settings.validate()
        assert result.is_valid
        assert result.errors == []


class TestEditorSettings:
    """Test editor settings defaults and clamping."""

    def test_defaults(self, app_settings: AppSettings) -> None:
        editor = app_settings.editor
        assert editor.autosave_enabled
        assert editor.default_project_name == "Untitled Project"
        assert editor.max_recent_documents == 10
        assert editor.compression_level == 9
        assert editor.project_extension == ".r5vproj"

    def test_values_persist(self, app_settings: AppSettings, qsettings: QSettings) -> None:
        app_settings.editor.autosave_enabled = False
        app_settings.editor.default_project_name = "My Mod"

        reopened = AppSettings(profile="test", settings=QSettings(qsettings.fileName(), QSettings.Format.IniFormat))

        assert not reopened.editor.autosave_enabled
        assert reopened.editor.default_project_name == "My Mod"

    def test_compression_level_is_clamped(self, app_settings: AppSettings) -> None:
        app_settings.editor.compression_level = 42
        assert app_settings.editor.compression_level == 9
        app_settings.editor.compression_level = -1
        assert app_settings.editor.compression_level == 0

    def test_invalid_extension_rejected(self, app_settings: AppSettings) -> None:
        with pytest.raises(ConfigError):
            app_settings.editor.project_extension = "r5vproj"


class TestRecentDocuments:
    """Test the recent documents store."""

    def test_add_moves_to_front_without_duplicates(self, app_settings: AppSettings) -> None:
        recent = app_settings.recent_documents
        recent.add("A", "/mods/a.r5vproj")
        recent.add("B", "/mods/b.r5vproj")
        recent.add("A again", "/mods/a.r5vproj")

        assert recent.paths == ["/mods/a.r5vproj", "/mods/b.r5vproj"]
        assert recent.entries[0].name == "A again"

    def test_list_is_capped(self, app_settings: AppSettings) -> None:
        app_settings.editor.max_recent_documents = 3
        recent = app_settings.recent_documents
        for i in range(5):
            recent.add(f"P{i}", f"/mods/p{i}.r5vproj")

        assert recent.paths == ["/mods/p4.r5vproj", "/mods/p3.r5vproj", "/mods/p2.r5vproj"]

    def test_remove_and_clear(self, app_settings: AppSettings) -> None:
        recent = app_settings.recent_documents
        recent.add("A", "/mods/a.r5vproj")
        assert recent.remove("/mods/a.r5vproj")
        assert not recent.remove("/mods/a.r5vproj")
        recent.add("B", "/mods/b.r5vproj")
        recent.clear()
        assert recent.entries == []

    def test_validation_prunes_missing_files(self, app_settings: AppSettings, tmp_path: Path) -> None:
        existing = tmp_path / "kept.r5vproj"
        existing.write_bytes(b"R5VP")
        recent = app_settings.recent_documents
        recent.add("Gone", str(tmp_path / "gone.r5vproj"))
        recent.add("Kept", str(existing))

        result = app_settings.validate()

        assert result.is_valid
        assert len(result.warnings) == 1
        assert recent.paths == [str(existing)]

    def test_corrupt_value_is_ignored(self, app_settings: AppSettings) -> None:
        app_settings.settings.setValue(RECENT_DOCUMENTS_KEY, "{broken")
        assert app_settings.recent_documents.entries == []


class TestValidation:
    """Test configuration errors."""

    def test_invalid_console_level(self, app_settings: AppSettings) -> None:
        app_settings.settings.setValue("logging/console_level", "LOUD")
        result = app_settings.validate()
        assert not result.is_valid
        assert "LOUD" in result.errors[0]

    def test_setter_keeps_valid_level(self, app_settings: AppSettings) -> None:
        app_settings.logging.console_log_level = "nonsense"
        assert app_settings.logging.console_log_level == "INFO"
        app_settings.logging.console_log_level = "debug"
        assert app_settings.logging.console_log_level == "DEBUG"

    def test_level_names_come_from_logging(self) -> None:
        assert VALID_LEVELS == ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        assert level_number("warning") == logging.WARNING
        assert level_number("WARN") == logging.INFO

    def test_console_level_number(self, app_settings: AppSettings) -> None:
        app_settings.logging.console_log_level = "error"
        assert app_settings.logging.console_level_number == logging.ERROR
        app_settings.settings.setValue("logging/console_level", "LOUD")
        assert app_settings.logging.console_level_number == logging.INFO


class TestMigration:
    """Test migration of legacy settings."""

    def test_legacy_recent_projects_are_migrated(self, qsettings: QSettings) -> None:
        legacy = [
            {"name": "Old", "path": "/mods/old.r5vproj", "lastOpened": 1700000000000},
            {"name": "Dup", "path": "/mods/old.r5vproj", "lastOpened": 1600000000000},
            {"broken": True},
        ]
        qsettings.beginGroup("test")
        qsettings.setValue("recentProjects", orjson.dumps(legacy).decode("utf-8"))
        qsettings.endGroup()

        settings = AppSettings(profile="test", settings=qsettings)

        entries = settings.recent_documents.entries
        assert [e.path for e in entries] == ["/mods/old.r5vproj"]
        assert entries[0].name == "Old"
        assert entries[0].last_opened.year == 2023
        assert settings.version == ConfigVersion.CURRENT.value
        assert not settings.settings.contains("recentProjects")

    def test_old_version_is_upgraded(self, qsettings: QSettings) -> None:
        qsettings.beginGroup("test")
        qsettings.setValue("app/version", "1.0")
        qsettings.endGroup()

        settings = AppSettings(profile="test", settings=qsettings)

        assert settings.version == "1.1"
        assert str(settings.settings.value("app/migrated_from")) == "1.0"
