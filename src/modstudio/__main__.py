"""
Command-line entry point for R5V Mod Studio project files.
Usage: python -m modstudio {new,info,recent} ...
"""

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from PySide6.QtCore import QCoreApplication

from . import __version__
from .project import ArtifactKind, DocumentEngine, ManualScheduler
from .project.picker import FilePicker, OpenDialogResult, SaveDialogResult
from .settings import AppSettings
from .utils.logging_config import setup_logging


class FixedPathPicker(FilePicker):
    """Answers every dialog with a path given on the command line."""

    def __init__(self, path: str):
        self.path = path

    def ask_save_path(self, default_name: str, extension: str) -> SaveDialogResult:
        return SaveDialogResult(canceled=False, path=self.path)

    def ask_open_paths(self, extensions: Sequence[str]) -> OpenDialogResult:
        return OpenDialogResult(canceled=False, paths=(self.path,))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modstudio", description="Create and inspect R5V Mod Studio projects"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    parser.add_argument("--profile", default="default", help="Settings profile")

    commands = parser.add_subparsers(dest="command", required=True)

    new_cmd = commands.add_parser("new", help="Create an empty project file")
    new_cmd.add_argument("path", help="Target file (extension is added if missing)")
    new_cmd.add_argument("--name", help="Project name")

    info_cmd = commands.add_parser("info", help="Describe a project file")
    info_cmd.add_argument("path", help="Project file to read")

    recent_cmd = commands.add_parser("recent", help="List recently used projects")
    recent_cmd.add_argument("--clear", action="store_true", help="Forget every entry")
    return parser


def _make_engine(settings: AppSettings, path: str) -> DocumentEngine:
    return DocumentEngine.from_settings(
        settings, file_picker=FixedPathPicker(path), scheduler=ManualScheduler()
    )


def cmd_new(settings: AppSettings, path: str, name: Optional[str]) -> int:
    engine = _make_engine(settings, path)
    engine.new_document(name)
    if not engine.save_as():
        print(f"Could not create project at {path}", file=sys.stderr)
        return 1
    print(f"Created {engine.backing_path}")
    return 0


def cmd_info(settings: AppSettings, path: str) -> int:
    engine = _make_engine(settings, path)
    if not engine.load():
        print(f"Could not open project {path}", file=sys.stderr)
        return 1

    document = engine.document
    metadata = document.metadata
    lines: List[str] = [
        f"Name:           {metadata.name}",
        f"Version:        {metadata.version}",
        f"Editor version: {metadata.editor_version}",
        f"Created:        {metadata.created_at.isoformat()}",
        f"Modified:       {metadata.modified_at.isoformat()}",
        f"Mod id:         {document.mod.mod_id}",
    ]
    for kind in ArtifactKind:
        collection = document.collection(kind)
        active = engine.active_artifact(kind)
        lines.append(
            f"{kind.value.capitalize():<15} {len(collection)} file(s), "
            f"{len(collection.all_folders())} folder(s)"
            + (f", active: {active.name}" if active else "")
        )
    print("\n".join(lines))
    return 0


def cmd_recent(settings: AppSettings, clear: bool) -> int:
    recent = settings.recent_documents
    if clear:
        recent.clear()
        print("Recent projects cleared")
        return 0
    entries = recent.entries
    if not entries:
        print("No recent projects")
    for entry in entries:
        print(f"{entry.last_opened:%Y-%m-%d %H:%M}  {entry.name}  ({entry.path})")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main command-line entry point."""
    args = build_parser().parse_args(argv)

    _app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    settings = AppSettings(profile=args.profile)
    setup_logging(settings, console_level="DEBUG" if args.verbose else None)

    logger = logging.getLogger(f"{__name__}.main")
    validation = settings.validate()
    for warning in validation.warnings:
        logger.warning(warning)
    if not validation.is_valid:
        for error in validation.errors:
            logger.error(error)
        return 1

    if args.command == "new":
        return cmd_new(settings, args.path, args.name)
    if args.command == "info":
        return cmd_info(settings, args.path)
    return cmd_recent(settings, args.clear)


if __name__ == "__main__":
    sys.exit(main())
