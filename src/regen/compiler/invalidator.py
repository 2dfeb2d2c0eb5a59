"""
Dependency invalidation for incremental compilation.

Maps the classified input changes onto the main files that must be
recompiled and the edges whose outputs must be deleted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ..core.changes import FileStatus
from ..core.errors import make_resolution_error
from .dependency import DependencyData
from .store import DependencyDataStore

logger = logging.getLogger(__name__)


@dataclass
class InvalidationPlan:
    """Work derived from a change set."""

    to_compile: list[Path] = field(default_factory=list)
    to_remove: list[DependencyData] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.to_compile and not self.to_remove


def find_source_root(file: Path, roots: Sequence[Path]) -> Path:
    """
    Find the configured source root containing ``file``.

    Walks up the parent directories of ``file`` until one of them is a
    registered root.

    Raises:
        DependencyResolutionError: If no root contains the file
    """
    root = _source_root_or_none(file, roots)
    if root is None:
        raise make_resolution_error(file, list(roots))
    return root


def _source_root_or_none(file: Path, roots: Sequence[Path]) -> Path | None:
    for parent in file.parents:
        for root in roots:
            if parent == root:
                return root
    return None


def plan_invalidation(
    changes: Mapping[Path, FileStatus],
    store: DependencyDataStore,
    source_roots: Sequence[Path],
) -> InvalidationPlan:
    """
    Work out what an incremental run has to do.

    A path is a main file when the store has an edge for it or when it lives
    under a source root. Every main file is scheduled at most once.

    Args:
        changes: Classified input changes
        store: Dependency store of the previous run
        source_roots: Configured source roots (absolute)

    Returns:
        InvalidationPlan with the files to compile and the edges to remove
    """
    plan = InvalidationPlan()
    scheduled: set[Path] = set()
    removed = {p for p, s in changes.items() if s is FileStatus.REMOVED}

    def schedule(path: Path) -> None:
        if path in scheduled or path in removed:
            return
        scheduled.add(path)
        plan.to_compile.append(path)

    for path, status in changes.items():
        key = str(path)
        is_main = key in store or _source_root_or_none(path, source_roots) is not None

        match status:
            case FileStatus.NEW | FileStatus.CHANGED:
                if is_main:
                    schedule(path)
                for data in store.get_dependents(key):
                    logger.debug(f"{path} is read by {data.main_file}")
                    schedule(Path(data.main_file))
            case FileStatus.REMOVED:
                data = store.get(key)
                if data is not None:
                    plan.to_remove.append(data)
                # A removed dependency-only file needs no direct action.

    return plan


__all__ = ["InvalidationPlan", "find_source_root", "plan_invalidation"]
