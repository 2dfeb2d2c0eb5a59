"""
Merge inputs.

A merge input is one contributor to the merge: a directory tree or an
archive, exposing an ordered listing of relative paths (always "/"
separated) and a byte stream per path. Renaming and filtering are views that
hold a reference to the input they wrap and never copy its data.
"""

from __future__ import annotations

import io
import zipfile
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import StrEnum
from pathlib import Path
from typing import BinaryIO


class Scope(StrEnum):
    """Where an input comes from."""

    PROJECT = "project"  # the module being built
    EXTERNAL = "external"  # dependencies


class MergeInput(ABC):
    """Interface shared by all merge contributors."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identifier, recorded in the merge state."""

    @property
    @abstractmethod
    def scope(self) -> Scope: ...

    @property
    @abstractmethod
    def is_directory(self) -> bool: ...

    @abstractmethod
    def paths(self) -> list[str]:
        """Relative paths provided by this input, in a fixed order."""

    @abstractmethod
    def open(self, path: str) -> BinaryIO:
        """Open the content of ``path`` for reading."""

    @abstractmethod
    def fingerprint(self, path: str) -> str:
        """Cheap change marker for ``path`` (size plus mtime or CRC)."""

    def read(self, path: str) -> bytes:
        with self.open(path) as stream:
            return stream.read()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {self.scope.value})"


class DirectoryMergeInput(MergeInput):
    """Input backed by a directory tree."""

    def __init__(self, root: Path, scope: Scope = Scope.EXTERNAL):
        self.root = root.resolve()
        self._scope = scope

    @property
    def name(self) -> str:
        return str(self.root)

    @property
    def scope(self) -> Scope:
        return self._scope

    @property
    def is_directory(self) -> bool:
        return True

    def paths(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(
            p.relative_to(self.root).as_posix() for p in self.root.rglob("*") if p.is_file()
        )

    def open(self, path: str) -> BinaryIO:
        return open(self.root / path, "rb")

    def fingerprint(self, path: str) -> str:
        stat = (self.root / path).stat()
        return f"{stat.st_size}:{stat.st_mtime_ns}"


class ArchiveMergeInput(MergeInput):
    """Input backed by a zip archive (jar, aar, ...)."""

    def __init__(self, archive: Path, scope: Scope = Scope.EXTERNAL):
        self.archive = archive.resolve()
        self._scope = scope
        self._entries: dict[str, zipfile.ZipInfo] = {}
        self._signature: tuple[int, int] | None = None

    @property
    def name(self) -> str:
        return str(self.archive)

    @property
    def scope(self) -> Scope:
        return self._scope

    @property
    def is_directory(self) -> bool:
        return False

    def _load_entries(self) -> dict[str, zipfile.ZipInfo]:
        # Re-read the central directory whenever the archive itself changed.
        try:
            stat = self.archive.stat()
        except FileNotFoundError:
            self._entries, self._signature = {}, None
            return self._entries
        signature = (stat.st_size, stat.st_mtime_ns)
        if signature != self._signature:
            with zipfile.ZipFile(self.archive) as zf:
                self._entries = {
                    info.filename: info for info in zf.infolist() if not info.is_dir()
                }
            self._signature = signature
        return self._entries

    def paths(self) -> list[str]:
        return sorted(self._load_entries())

    def open(self, path: str) -> BinaryIO:
        # Each call opens its own handle so that units on different threads
        # never share a ZipFile.
        with zipfile.ZipFile(self.archive) as zf:
            return io.BytesIO(zf.read(path))

    def fingerprint(self, path: str) -> str:
        info = self._load_entries()[path]
        return f"{info.file_size}:{info.CRC:08x}"


class RenameMergeInput(MergeInput):
    """View of another input with every path rewritten."""

    def __init__(
        self,
        wrapped: MergeInput,
        rename: Callable[[str], str],
        inverse: Callable[[str], str],
    ):
        self.wrapped = wrapped
        self._rename = rename
        self._inverse = inverse

    @property
    def name(self) -> str:
        return self.wrapped.name

    @property
    def scope(self) -> Scope:
        return self.wrapped.scope

    @property
    def is_directory(self) -> bool:
        return self.wrapped.is_directory

    def paths(self) -> list[str]:
        return [self._rename(p) for p in self.wrapped.paths()]

    def open(self, path: str) -> BinaryIO:
        return self.wrapped.open(self._inverse(path))

    def fingerprint(self, path: str) -> str:
        return self.wrapped.fingerprint(self._inverse(path))


class FilterMergeInput(MergeInput):
    """View of another input restricted to the paths a predicate accepts."""

    def __init__(self, wrapped: MergeInput, accept: Callable[[str], bool]):
        self.wrapped = wrapped
        self._accept = accept

    @property
    def name(self) -> str:
        return self.wrapped.name

    @property
    def scope(self) -> Scope:
        return self.wrapped.scope

    @property
    def is_directory(self) -> bool:
        return self.wrapped.is_directory

    def paths(self) -> list[str]:
        return [p for p in self.wrapped.paths() if self._accept(p)]

    def open(self, path: str) -> BinaryIO:
        if not self._accept(path):
            raise KeyError(f"Path '{path}' is filtered out of {self.name}")
        return self.wrapped.open(path)

    def fingerprint(self, path: str) -> str:
        return self.wrapped.fingerprint(path)


def open_input(path: Path, scope: Scope = Scope.EXTERNAL) -> MergeInput:
    """Create the right input type for a directory or an archive."""
    if path.is_dir():
        return DirectoryMergeInput(path, scope)
    return ArchiveMergeInput(path, scope)


__all__ = [
    "Scope",
    "MergeInput",
    "DirectoryMergeInput",
    "ArchiveMergeInput",
    "RenameMergeInput",
    "FilterMergeInput",
    "open_input",
]
