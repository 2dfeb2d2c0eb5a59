"""
Change detection for incremental runs.

Compares the input snapshot recorded by the previous run against the current
filesystem snapshot and classifies every differing path.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from .fingerprints import FileFingerprint, InputRecord


class FileStatus(StrEnum):
    """Status of an input path relative to the previous run."""

    NEW = "new"
    CHANGED = "changed"
    REMOVED = "removed"


def classify_changes(
    previous: Mapping[str, FileFingerprint],
    current: Mapping[str, InputRecord],
) -> dict[Path, FileStatus]:
    """
    Classify every path that differs between two snapshots.

    Paths with identical content are omitted. A path present in ``previous``
    and absent from ``current`` is always reported as REMOVED.

    Args:
        previous: Fingerprints recorded by the previous run
        current: Snapshot of the current inputs

    Returns:
        Dict mapping path to its status, sorted by path
    """
    changes: dict[Path, FileStatus] = {}

    for key, record in current.items():
        old = previous.get(key)
        if old is None:
            changes[Path(key)] = FileStatus.NEW
        elif not old.same_content(record.fingerprint):
            changes[Path(key)] = FileStatus.CHANGED

    for key in previous:
        if key not in current:
            changes[Path(key)] = FileStatus.REMOVED

    return dict(sorted(changes.items()))


@dataclass
class ChangeSet:
    """
    Describes which inputs changed since the previous run.

    Used for reporting; the engine itself works on the classified mapping.
    """

    added: set[str]
    modified: set[str]
    removed: set[str]

    @staticmethod
    def from_changes(changes: Mapping[Path, FileStatus]) -> "ChangeSet":
        return ChangeSet(
            added={str(p) for p, s in changes.items() if s is FileStatus.NEW},
            modified={str(p) for p, s in changes.items() if s is FileStatus.CHANGED},
            removed={str(p) for p, s in changes.items() if s is FileStatus.REMOVED},
        )

    def is_empty(self) -> bool:
        """Check if there are no changes."""
        return not self.added and not self.modified and not self.removed

    def summary(self) -> str:
        """Generate human-readable summary of changes."""
        if self.is_empty():
            return "  No changes"

        lines = []
        if self.added:
            lines.append(f"  Files: +{len(self.added)}")
        if self.modified:
            lines.append(f"  Files: ~{len(self.modified)}")
        if self.removed:
            lines.append(f"  Files: -{len(self.removed)}")
        return "\n".join(lines)


__all__ = ["FileStatus", "ChangeSet", "classify_changes"]
