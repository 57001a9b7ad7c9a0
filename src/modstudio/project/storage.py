"""
Storage collaborators for project bytes.

``FileStorage`` writes the compressed project format: the 4-byte magic
``R5VP`` followed by gzip-compressed JSON. Reading auto-detects older
uncompressed (plain JSON) files.
"""

import gzip
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .errors import StorageReadFailed, StorageUnavailable, StorageWriteFailed

MAGIC = b"R5VP"
DEFAULT_COMPRESSION_LEVEL = 9


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a successful write.

    Attributes:
        path: Path that was written
        original_size: Size of the uncompressed payload in bytes
        written_size: Size of the bytes on disk
    """

    path: str
    original_size: int
    written_size: int

    @property
    def compression_ratio(self) -> float:
        """Percentage saved by compression (0.0 for empty payloads)."""
        if self.original_size == 0:
            return 0.0
        return (1 - self.written_size / self.original_size) * 100


@dataclass(frozen=True)
class ReadResult:
    """Bytes read back from storage, already decompressed."""

    path: str
    data: bytes
    compressed: bool


class StorageBackend(ABC):
    """Reads and writes whole project payloads.

    Implementations raise ``StorageUnavailable``, ``StorageWriteFailed`` or
    ``StorageReadFailed``; they never retry.
    """

    @abstractmethod
    def write(self, path: str, data: bytes) -> WriteResult:
        """Persist ``data`` at ``path``, replacing any previous content."""

    @abstractmethod
    def read(self, path: str) -> ReadResult:
        """Load the payload previously written at ``path``."""


def compress(data: bytes, level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
    """Wrap a JSON payload in the compressed project format."""
    return MAGIC + gzip.compress(data, compresslevel=level)


def is_compressed(raw: bytes) -> bool:
    """Check for the compressed project magic header."""
    return raw[: len(MAGIC)] == MAGIC


def decompress(raw: bytes) -> bytes:
    """Unwrap the compressed project format; plain JSON is returned unchanged.

    Raises:
        ValueError: If the gzip stream is corrupt
    """
    if not is_compressed(raw):
        return raw
    try:
        return gzip.decompress(raw[len(MAGIC):])
    except (OSError, EOFError) as e:
        raise ValueError(f"Corrupt compressed project data: {e}") from e


class FileStorage(StorageBackend):
    """Stores projects as local files.

    Writes go to a temporary file in the target directory that replaces the
    target once complete, so an interrupted save never truncates the
    previous version.
    """

    def __init__(self, compression_level: int = DEFAULT_COMPRESSION_LEVEL):
        """Initialize file storage.

        Args:
            compression_level: gzip level 0-9 (clamped)
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.compression_level = max(0, min(9, compression_level))

    def write(self, path: Union[str, Path], data: bytes) -> WriteResult:
        target = Path(path)
        if not target.parent.is_dir():
            raise StorageUnavailable(
                f"Directory does not exist: {target.parent}", path=str(target)
            )

        payload = compress(data, self.compression_level)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
            )
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp_name, target)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageWriteFailed(f"Failed to write {target}: {e}", path=str(target)) from e

        self.logger.debug(f"Wrote {len(payload)} bytes to {target}")
        return WriteResult(path=str(target), original_size=len(data), written_size=len(payload))

    def read(self, path: Union[str, Path]) -> ReadResult:
        target = Path(path)
        try:
            raw = target.read_bytes()
        except OSError as e:
            raise StorageReadFailed(f"Failed to read {target}: {e}", path=str(target)) from e

        compressed = is_compressed(raw)
        try:
            data = decompress(raw)
        except ValueError as e:
            raise StorageReadFailed(str(e), path=str(target)) from e

        if compressed:
            self.logger.debug(f"Read compressed project {target} ({len(raw)} -> {len(data)} bytes)")
        else:
            self.logger.debug(f"Read uncompressed project {target} ({len(raw)} bytes)")
        return ReadResult(path=str(target), data=data, compressed=compressed)
