"""Unpacking of downloaded mod archives (.zip, .7z, .rar).

The mod store only consumes the unpacked tree, so every handler offers the
same two operations: list what is inside and extract all of it. Entry names
are checked before anything is written so an archive cannot place files
outside the extraction directory.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import zipfile
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import py7zr

from stackmod_manager.constants import SUPPORTED_ARCHIVE_EXTENSIONS

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    filename: str
    is_dir: bool
    size: int = 0


class ExtractionError(RuntimeError):
    """The archive could not be unpacked."""


class ArchiveHandler(ABC):
    """Common interface of the per-format handlers; use as a context manager."""

    @abstractmethod
    def list_entries(self) -> list[ArchiveEntry]:
        """Return all entries in the archive."""

    @abstractmethod
    def extract_all(self, dest: Path) -> None:
        """Unpack every entry under *dest*."""

    def close(self) -> None:  # noqa: B027
        """Release the underlying file, if any."""

    def __enter__(self) -> ArchiveHandler:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    @staticmethod
    def _check_names(names: Iterable[str], dest: Path) -> None:
        """Refuse entries that would resolve outside *dest*."""
        root = dest.resolve()
        for name in names:
            target = (dest / name.replace("\\", "/")).resolve()
            if target != root and not target.is_relative_to(root):
                raise ExtractionError(f"Refusing entry outside the archive root: {name}")


class ZipHandler(ArchiveHandler):
    def __init__(self, path: str | Path) -> None:
        self._zf = zipfile.ZipFile(path, "r")

    def list_entries(self) -> list[ArchiveEntry]:
        return [
            ArchiveEntry(filename=info.filename, is_dir=info.is_dir(), size=info.file_size)
            for info in self._zf.infolist()
        ]

    def extract_all(self, dest: Path) -> None:
        self._check_names(self._zf.namelist(), dest)
        self._zf.extractall(dest)

    def close(self) -> None:
        self._zf.close()


class SevenZipHandler(ArchiveHandler):
    """Handler for .7z archives using py7zr.

    py7zr reads the archive as a stream, so listing names and extracting
    need a ``reset()`` in between.
    """

    def __init__(self, path: str | Path) -> None:
        self._archive = py7zr.SevenZipFile(Path(path), mode="r")

    def list_entries(self) -> list[ArchiveEntry]:
        return [
            ArchiveEntry(
                filename=info.filename,
                is_dir=info.is_directory,
                size=getattr(info, "uncompressed", 0) or 0,
            )
            for info in self._archive.list()
        ]

    def extract_all(self, dest: Path) -> None:
        self._check_names(self._archive.getnames(), dest)
        self._archive.reset()
        self._archive.extractall(path=dest)

    def close(self) -> None:
        self._archive.close()


def _parse_slt_listing(output: str) -> list[ArchiveEntry]:
    """Parse ``7z l -slt`` output into entries.

    Everything before the ``----------`` separator describes the archive
    itself. After it, each blank-line separated block is one entry of
    ``Key = Value`` lines.
    """
    _, sep, body = output.partition("----------")
    if not sep:
        return []

    entries: list[ArchiveEntry] = []
    for block in body.strip().split("\n\n"):
        fields: dict[str, str] = {}
        for line in block.splitlines():
            key, eq, value = line.partition(" = ")
            if eq:
                fields[key.strip()] = value.strip()
        if "Path" not in fields:
            continue
        size = fields.get("Size", "0")
        entries.append(
            ArchiveEntry(
                filename=fields["Path"],
                is_dir=fields.get("Folder") == "+",
                size=int(size) if size.isdigit() else 0,
            )
        )
    return entries


class RarHandler(ArchiveHandler):
    """Handler for .rar archives through the 7-Zip command line tool."""

    def __init__(self, path: str | Path, sevenzip_command: str = "7z") -> None:
        exe = shutil.which(sevenzip_command)
        if not exe:
            raise FileNotFoundError(
                f"RAR extraction requires 7-Zip ({sevenzip_command!r} not found on PATH)"
            )
        self._exe = exe
        self._path = str(path)

    def _run(self, *args: str) -> str:
        result = subprocess.run(
            [self._exe, *args, self._path],
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            raise ExtractionError(
                f"7z {args[0]} failed (exit {result.returncode}): {result.stderr.strip()}"
            )
        return result.stdout

    def list_entries(self) -> list[ArchiveEntry]:
        return _parse_slt_listing(self._run("l", "-slt"))

    def extract_all(self, dest: Path) -> None:
        self._check_names((e.filename for e in self.list_entries()), dest)
        self._run("x", "-y", f"-o{dest}")


def open_archive(path: str | Path, sevenzip_command: str = "7z") -> ArchiveHandler:
    """Open an archive file and return the handler for its format.

    Raises:
        ValueError: If the file extension is not supported.
        FileNotFoundError: For RAR files when 7-Zip is not installed.
        zipfile.BadZipFile: If a ZIP file is corrupt.
    """
    path = Path(path)
    ext = path.suffix.lower()
    if ext not in SUPPORTED_ARCHIVE_EXTENSIONS:
        raise ValueError(f"Unsupported archive format: {ext}")

    logger.debug("Opening %s archive %s", ext, path.name)
    if ext == ".zip":
        return ZipHandler(path)
    if ext == ".7z":
        return SevenZipHandler(path)
    return RarHandler(path, sevenzip_command)
