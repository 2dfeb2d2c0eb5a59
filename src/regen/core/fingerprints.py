"""
File fingerprints used to detect input changes between runs.

A fingerprint records modification time, size and content hash. When the
stored mtime and size still match, the stored hash is reused instead of
re-reading the file.
"""

from __future__ import annotations

import hashlib
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from .errors import StateError


class InputRole(StrEnum):
    """Logical role of a physical input."""

    SOURCE = "source"  # compiled main file
    IMPORT = "import"  # only ever read as a dependency


class FileFingerprint(BaseModel):
    """Fingerprint of one input file."""

    path: str
    mtime_ns: int
    size: int
    sha256: str

    model_config = ConfigDict(frozen=True)

    def same_content(self, other: "FileFingerprint") -> bool:
        return self.sha256 == other.sha256


class InputRecord(BaseModel):
    """A fingerprinted input together with its logical role."""

    fingerprint: FileFingerprint
    role: InputRole

    model_config = ConfigDict(frozen=True)

    @property
    def path(self) -> str:
        return self.fingerprint.path


def compute_file_hash(file_path: Path) -> str:
    """
    Compute SHA256 hash of a file.

    Args:
        file_path: Path to file

    Returns:
        Hex-encoded SHA256 hash

    Raises:
        StateError: If file cannot be read
    """
    try:
        sha256 = hashlib.sha256()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                sha256.update(chunk)
        return sha256.hexdigest()
    except OSError as e:
        raise StateError(f"Failed to hash file {file_path}: {e}") from e


def fingerprint_file(
    file_path: Path, previous: FileFingerprint | None = None
) -> FileFingerprint:
    """
    Fingerprint a file, reusing the previous hash when mtime and size match.

    Args:
        file_path: Absolute path of the file
        previous: Fingerprint recorded by the previous run, if any

    Returns:
        Fresh fingerprint
    """
    stat = file_path.stat()
    mtime_ns = int(stat.st_mtime_ns)
    size = int(stat.st_size)
    if previous is not None and previous.mtime_ns == mtime_ns and previous.size == size:
        return previous
    return FileFingerprint(
        path=str(file_path),
        mtime_ns=mtime_ns,
        size=size,
        sha256=compute_file_hash(file_path),
    )


def discover_files(roots: list[Path], pattern: str) -> list[Path]:
    """
    Find all files matching ``pattern`` under the given roots.

    Missing roots are skipped. The result is sorted and de-duplicated.
    """
    files: list[Path] = []
    for root in roots:
        base = root.resolve()
        if not base.is_dir():
            continue
        for p in base.rglob(pattern):
            if p.is_file():
                files.append(p)
    return sorted(set(files))


def build_snapshot(
    paths: list[Path],
    role: InputRole,
    previous: dict[str, FileFingerprint] | None = None,
) -> dict[str, InputRecord]:
    """
    Fingerprint every path into a snapshot keyed by absolute path string.

    Args:
        paths: Files to fingerprint
        role: Logical role shared by all of them
        previous: Fingerprints from the previous run, used for the mtime fast path

    Returns:
        Dict mapping absolute path to InputRecord
    """
    previous = previous or {}
    snapshot: dict[str, InputRecord] = {}
    for p in paths:
        key = str(p)
        fp = fingerprint_file(p, previous.get(key))
        snapshot[key] = InputRecord(fingerprint=fp, role=role)
    return snapshot


__all__ = [
    "InputRole",
    "FileFingerprint",
    "InputRecord",
    "compute_file_hash",
    "fingerprint_file",
    "discover_files",
    "build_snapshot",
]
