"""Tests for the document engine editor-surface API."""

from typing import List, Tuple

import orjson
import pytest

from modstudio.project import ArtifactKind, DocumentEngine, EditorViewState, ModSettings
from modstudio.project.errors import StorageWriteFailed, UnknownArtifact
from modstudio.project.serializer import ProjectSerializer

from .conftest import MemoryStorage, RecentRecorder, ScriptedPicker


def weapon_names(engine: DocumentEngine) -> List[str]:
    return engine.document.weapons.names


class TestNewDocument:
    """Test the default document."""

    def test_engine_starts_with_main_script(self, engine: DocumentEngine) -> None:
        scripts = engine.document.scripts
        assert scripts.names == ["main.nut"]
        assert engine.selection.active_id(ArtifactKind.SCRIPT) == scripts.first_id()
        assert not engine.has_unsaved_changes
        assert engine.backing_path is None

    def test_new_document_replaces_state(self, saved_engine: DocumentEngine) -> None:
        replaced: List[object] = []
        saved_engine.signals.document_replaced.connect(replaced.append)
        saved_engine.weapons.create("r97")

        document = saved_engine.new_document("Fresh")

        assert saved_engine.document is document
        assert document.metadata.name == "Fresh"
        assert len(document.weapons) == 0
        assert saved_engine.backing_path is None
        assert replaced == [document]

    def test_default_save_name(self, engine: DocumentEngine) -> None:
        engine.update_metadata(name="R97 Pack")
        assert engine.default_save_name == "R97 Pack.r5vproj"


class TestArtifactOperations:
    """Test create/delete/rename/select through the engine."""

    def test_create_selects_new_artifact(self, engine: DocumentEngine) -> None:
        selections: List[Tuple[str, object]] = []
        engine.signals.selection_changed.connect(lambda kind, i: selections.append((kind, i)))

        weapon_id = engine.create_artifact(ArtifactKind.WEAPON, "smg/r97.txt")

        assert weapon_id is not None
        assert weapon_names(engine) == ["smg/r97"]
        assert engine.selection.active_id(ArtifactKind.WEAPON) == weapon_id
        assert engine.selection.active_collection is ArtifactKind.WEAPON
        assert selections == [("weapon", weapon_id)]
        assert engine.has_unsaved_changes

    def test_create_accepts_kind_value(self, engine: DocumentEngine) -> None:
        assert engine.create_artifact("ui", "hud", file_type="res") is not None

    def test_create_with_bad_payload_returns_none(self, engine: DocumentEngine) -> None:
        assert engine.localization_files.create("mymod", language="klingon") is None
        assert not engine.has_unsaved_changes

    def test_create_with_foreign_payload_field_returns_none(self, engine: DocumentEngine) -> None:
        assert engine.weapons.create("r97", language="english") is None
        assert weapon_names(engine) == []
        assert not engine.has_unsaved_changes

    def test_delete_last_script_is_refused(self, engine: DocumentEngine) -> None:
        only = engine.document.scripts.first_id()
        assert not engine.scripts.delete(only)
        assert engine.document.scripts.ids == [only]
        assert not engine.has_unsaved_changes

    def test_delete_active_reassigns_pointer(self, engine: DocumentEngine) -> None:
        first = engine.weapons.create("a")
        second = engine.weapons.create("b")

        assert engine.weapons.delete(second)

        assert engine.weapons.active_id == first

    def test_delete_last_weapon_refocuses_scripts(self, engine: DocumentEngine) -> None:
        weapon_id = engine.weapons.create("a")
        assert engine.weapons.delete(weapon_id)
        assert engine.weapons.active_id is None
        assert engine.selection.active_collection is ArtifactKind.SCRIPT

    def test_delete_forgets_dirty_id(self, engine: DocumentEngine) -> None:
        weapon_id = engine.weapons.create("a")
        engine.update_weapon_content(weapon_id, "WeaponData {}")
        engine.weapons.delete(weapon_id)
        assert weapon_id not in engine.modified_ids

    def test_rename(self, engine: DocumentEngine) -> None:
        script_id = engine.document.scripts.first_id()
        assert engine.scripts.rename(script_id, "init")
        assert engine.get_artifact(ArtifactKind.SCRIPT, script_id).name == "init.nut"
        assert not engine.scripts.rename(script_id, "init.nut")

    def test_unknown_ids_return_false(self, engine: DocumentEngine) -> None:
        assert not engine.weapons.delete("weapon_missing")
        assert not engine.weapons.rename("weapon_missing", "x")
        assert not engine.weapons.select("weapon_missing")
        assert not engine.update_weapon_content("weapon_missing", "")

    def test_get_artifact_raises_for_unknown_id(self, engine: DocumentEngine) -> None:
        with pytest.raises(UnknownArtifact):
            engine.get_artifact(ArtifactKind.WEAPON, "weapon_missing")

    def test_select_does_not_mark_unsaved(self, engine: DocumentEngine) -> None:
        script_id = engine.scripts.create("lib")
        engine.mark_saved()
        assert engine.scripts.select(engine.document.scripts.first_id())
        assert engine.scripts.select(script_id)
        assert not engine.has_unsaved_changes


class TestFolderOperations:
    """Test folder operations and their worked examples."""

    def test_delete_folder_example(self, engine: DocumentEngine) -> None:
        for name in ("weapons/a", "weapons/b", "c"):
            engine.weapons.create(name)
        engine.weapons.create_folder("weapons")

        assert engine.weapons.delete_folder("weapons")

        assert weapon_names(engine) == ["c"]
        assert engine.weapons.folders == []
        assert engine.weapons.active is not None
        assert engine.weapons.active.name == "c"

    def test_rename_folder_example(self, engine: DocumentEngine) -> None:
        for name in ("weapons/a", "weapons/sub/b", "c"):
            engine.weapons.create(name)

        assert engine.weapons.rename_folder("weapons", "guns")

        assert weapon_names(engine) == ["guns/a", "guns/sub/b", "c"]

    def test_delete_folder_holding_every_script_is_refused(self, engine: DocumentEngine) -> None:
        engine.scripts.rename(engine.document.scripts.first_id(), "lib/main")
        assert not engine.scripts.delete_folder("lib")
        assert len(engine.document.scripts) == 1

    def test_create_folder_twice(self, engine: DocumentEngine) -> None:
        assert engine.ui_files.create_folder("menus")
        assert not engine.ui_files.create_folder("menus")

    def test_folder_paths_are_normalized(self, engine: DocumentEngine) -> None:
        assert engine.weapons.create_folder("weapons/")
        assert not engine.weapons.create_folder("weapons")
        assert engine.weapons.folders == ["weapons"]

        assert engine.weapons.rename_folder("/weapons", "guns//")
        assert engine.weapons.folders == ["guns"]

        assert engine.weapons.delete_folder("guns/")
        assert engine.weapons.folders == []

    def test_rename_folder_to_top_level_is_refused(self, engine: DocumentEngine) -> None:
        engine.weapons.create_folder("weapons")
        assert not engine.weapons.rename_folder("weapons", "/")
        assert engine.weapons.folders == ["weapons"]


class TestContentEdits:
    """Test non-structural edits."""

    def test_content_edit_marks_artifact_dirty(self, saved_engine: DocumentEngine, storage: MemoryStorage) -> None:
        script_id = saved_engine.document.scripts.first_id()
        writes = len(storage.writes)

        assert saved_engine.update_script_content(script_id, [{"id": "n1"}], [])
        saved_engine.pipeline.scheduler.run_pending()  # type: ignore[attr-defined]

        assert saved_engine.modified_ids == frozenset({script_id})
        assert len(storage.writes) == writes

    def test_update_metadata(self, engine: DocumentEngine) -> None:
        before = engine.document.metadata.modified_at
        assert engine.update_metadata(author="someone", description="desc")
        assert engine.document.metadata.author == "someone"
        assert engine.document.metadata.modified_at >= before
        assert engine.has_unsaved_changes

    def test_update_metadata_rejects_unknown_fields(self, engine: DocumentEngine) -> None:
        with pytest.raises(ValueError):
            engine.update_metadata(editor_version="9.9.9")

    def test_update_mod_settings(self, engine: DocumentEngine) -> None:
        assert engine.update_mod_settings(ModSettings(mod_id="r97_pack"))
        assert engine.document.mod.mod_id == "r97_pack"
        assert not engine.update_mod_settings(ModSettings(mod_id="r97_pack"))

    def test_view_state_is_saved_without_marking_unsaved(
        self, saved_engine: DocumentEngine, storage: MemoryStorage
    ) -> None:
        saved_engine.update_view_state(EditorViewState(canvas_x=5.0, canvas_zoom=2.0))
        assert not saved_engine.has_unsaved_changes

        assert saved_engine.save()
        saved = ProjectSerializer().loads(storage.files["/mods/project.r5vproj"])
        assert saved.view.canvas_zoom == 2.0

    def test_mark_file_helpers(self, engine: DocumentEngine) -> None:
        engine.mark_file_modified("script_x")
        assert engine.has_unsaved_changes
        engine.mark_file_saved("script_x")
        assert not engine.has_unsaved_changes
        engine.mark_modified()
        assert engine.has_unsaved_changes
        engine.mark_saved()
        assert not engine.has_unsaved_changes


class TestSaveAndLoad:
    """Test save, save-as, and load flows."""

    def test_dirty_then_save_example(
        self, engine: DocumentEngine, picker: ScriptedPicker
    ) -> None:
        engine.mark_file_modified(engine.document.scripts.first_id())
        picker.save_answers.append("/mods/example.r5vproj")

        assert engine.save()

        assert engine.modified_ids == frozenset()
        assert not engine.has_unsaved_changes

    def test_save_as_appends_extension(
        self, engine: DocumentEngine, picker: ScriptedPicker, storage: MemoryStorage,
        recent: RecentRecorder,
    ) -> None:
        picker.save_answers.append("/mods/pack")

        assert engine.save_as()

        assert engine.backing_path == "/mods/pack.r5vproj"
        assert "/mods/pack.r5vproj" in storage.files
        assert picker.save_requests == [("Untitled Project.r5vproj", ".r5vproj")]
        assert recent.added == [("Untitled Project", "/mods/pack.r5vproj")]

    def test_save_as_canceled(self, engine: DocumentEngine, storage: MemoryStorage) -> None:
        assert not engine.save_as()
        assert storage.writes == []
        assert engine.backing_path is None

    def test_structural_change_autosaves(
        self, saved_engine: DocumentEngine, storage: MemoryStorage
    ) -> None:
        scheduler = saved_engine.pipeline.scheduler
        writes = len(storage.writes)

        saved_engine.weapons.create("r97")
        assert saved_engine.has_unsaved_changes
        assert len(storage.writes) == writes

        scheduler.run_pending()  # type: ignore[attr-defined]

        assert len(storage.writes) == writes + 1
        assert not saved_engine.has_unsaved_changes

    def test_autosave_disabled(self, saved_engine: DocumentEngine, storage: MemoryStorage) -> None:
        saved_engine.autosave = False
        writes = len(storage.writes)
        saved_engine.weapons.create("r97")
        saved_engine.pipeline.scheduler.run_pending()  # type: ignore[attr-defined]
        assert len(storage.writes) == writes
        assert saved_engine.has_unsaved_changes

    def test_no_autosave_without_backing_path(self, engine: DocumentEngine, storage: MemoryStorage) -> None:
        engine.weapons.create("r97")
        engine.pipeline.scheduler.run_pending()  # type: ignore[attr-defined]
        assert storage.writes == []

    def test_failed_save_keeps_unsaved_flag(
        self, saved_engine: DocumentEngine, storage: MemoryStorage
    ) -> None:
        failures: List[str] = []
        saved_engine.signals.save_failed.connect(lambda path, msg: failures.append(msg))
        saved_engine.weapons.create("r97")
        storage.fail_with = StorageWriteFailed("disk full")

        assert not saved_engine.save()

        assert saved_engine.has_unsaved_changes
        assert failures

    def test_save_during_save_is_accepted(
        self, saved_engine: DocumentEngine, storage: MemoryStorage, recent: RecentRecorder
    ) -> None:
        """A save requested from a save handler is queued, not reported as failed."""
        nested: List[bool] = []

        def save_again(path: str) -> None:
            if not nested:
                nested.append(saved_engine.save())

        saved_engine.signals.save_started.connect(save_again)
        writes, remembered = len(storage.writes), len(recent.added)

        assert saved_engine.save()

        assert nested == [True]
        assert len(storage.writes) == writes + 2
        assert len(recent.added) == remembered + 2

    def test_load_from_path(
        self, saved_engine: DocumentEngine, storage: MemoryStorage, recent: RecentRecorder
    ) -> None:
        weapon_id = saved_engine.weapons.create("smg/r97")
        assert saved_engine.save()
        saved_state = saved_engine.document

        saved_engine.new_document()
        assert saved_engine.load_from_path("/mods/project.r5vproj")

        assert saved_engine.document == saved_state
        assert saved_engine.weapons.active_id == weapon_id
        assert saved_engine.backing_path == "/mods/project.r5vproj"
        assert not saved_engine.has_unsaved_changes
        assert recent.added[-1] == ("Untitled Project", "/mods/project.r5vproj")

    def test_load_via_picker(self, saved_engine: DocumentEngine, picker: ScriptedPicker) -> None:
        picker.open_answers.append(("/mods/project.r5vproj",))
        saved_engine.new_document()
        assert saved_engine.load()

    def test_load_canceled(self, engine: DocumentEngine) -> None:
        assert not engine.load()

    def test_invalid_file_leaves_document_untouched(
        self, engine: DocumentEngine, storage: MemoryStorage
    ) -> None:
        failures: List[str] = []
        engine.signals.load_failed.connect(lambda path, msg: failures.append(path))
        storage.files["/mods/broken.r5vproj"] = b'{"version": "1.0.0", "data": {}}'
        document = engine.document

        assert not engine.load_from_path("/mods/broken.r5vproj")

        assert engine.document is document
        assert failures == ["/mods/broken.r5vproj"]

    @pytest.mark.parametrize(
        "key, value", [("canvasZoom", "big"), ("canvasPosition", [1, 2])]
    )
    def test_malformed_view_state_leaves_document_untouched(
        self, engine: DocumentEngine, storage: MemoryStorage, key: str, value: object
    ) -> None:
        payload = ProjectSerializer().to_dict(engine.document)
        payload["data"]["settings"][key] = value
        storage.files["/mods/odd.r5vproj"] = orjson.dumps(payload)
        document = engine.document

        assert not engine.load_from_path("/mods/odd.r5vproj")

        assert engine.document is document
        assert engine.backing_path is None

    def test_missing_file(self, engine: DocumentEngine) -> None:
        assert not engine.load_from_path("/mods/missing.r5vproj")

    def test_load_repairs_dangling_selection(
        self, engine: DocumentEngine, storage: MemoryStorage
    ) -> None:
        serializer = ProjectSerializer()
        payload = serializer.to_dict(engine.document)
        payload["data"]["settings"]["activeScriptFile"] = "script_gone"
        storage.files["/mods/dangling.r5vproj"] = serializer.dumps(serializer.from_dict(payload))

        assert engine.load_from_path("/mods/dangling.r5vproj")

        assert engine.scripts.active_id == engine.document.scripts.first_id()

    def test_close_flushes_autosave(self, saved_engine: DocumentEngine, storage: MemoryStorage) -> None:
        saved_engine.weapons.create("r97")
        assert saved_engine.close()
        assert not saved_engine.has_unsaved_changes

    def test_close_with_unsaved_content(self, engine: DocumentEngine) -> None:
        engine.mark_modified()
        assert not engine.close()
