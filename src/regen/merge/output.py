"""
Merge outputs.

The merger calls exactly one of ``create``, ``update`` or ``remove`` per
affected output path. ``AlgorithmOutput`` turns contributors into bytes and
writes them to an ``OutputDirectory``; ``ProjectScopeOutput`` sits in front of
it and lets project content win paths that would otherwise conflict.
"""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from .algorithms import merge_contents
from .inputs import MergeInput, Scope
from .policy import PackagingAction, PackagingOptions

logger = logging.getLogger(__name__)


class MergeOutput(ABC):
    """Receiver of per-path merge decisions."""

    @abstractmethod
    def create(self, path: str, inputs: Sequence[MergeInput]) -> None:
        """Produce a path that did not exist in the previous run."""

    @abstractmethod
    def update(
        self, path: str, prev_input_names: Sequence[str], inputs: Sequence[MergeInput]
    ) -> None:
        """Re-produce a path whose contributors or their content changed."""

    @abstractmethod
    def remove(self, path: str) -> None:
        """Delete a path no input provides any more."""


class OutputDirectory:
    """Byte sink rooted at a directory."""

    def __init__(self, root: Path):
        self.root = root

    def write(self, path: str, data: bytes) -> None:
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    def remove(self, path: str) -> None:
        (self.root / path).unlink(missing_ok=True)

    def clean(self) -> None:
        """Delete everything under the root and recreate it empty."""
        if self.root.exists():
            shutil.rmtree(self.root)
        self.root.mkdir(parents=True, exist_ok=True)


class AlgorithmOutput(MergeOutput):
    """Output that merges contributors according to the packaging options."""

    def __init__(self, options: PackagingOptions, directory: OutputDirectory):
        self.options = options
        self.directory = directory

    def _write(self, path: str, inputs: Sequence[MergeInput]) -> None:
        data = merge_contents(self.options.get_action(path), path, inputs)
        self.directory.write(path, data)

    def create(self, path: str, inputs: Sequence[MergeInput]) -> None:
        logger.debug(f"create {path} from {len(inputs)} input(s)")
        self._write(path, inputs)

    def update(
        self, path: str, prev_input_names: Sequence[str], inputs: Sequence[MergeInput]
    ) -> None:
        logger.debug(f"update {path} (was {len(prev_input_names)} input(s), now {len(inputs)})")
        self._write(path, inputs)

    def remove(self, path: str) -> None:
        logger.debug(f"remove {path}")
        self.directory.remove(path)


class ProjectScopeOutput(MergeOutput):
    """
    Delegating output that resolves single-writer ties in favour of the project.

    When a path accepts only one input and at least one contributor is project
    scoped, all non-project contributors are dropped before delegating.
    """

    def __init__(self, delegate: MergeOutput, options: PackagingOptions):
        self.delegate = delegate
        self.options = options

    def _filter(self, path: str, inputs: Sequence[MergeInput]) -> list[MergeInput]:
        if self.options.get_action(path) is PackagingAction.NONE and any(
            i.scope is Scope.PROJECT for i in inputs
        ):
            return [i for i in inputs if i.scope is Scope.PROJECT]
        return list(inputs)

    def create(self, path: str, inputs: Sequence[MergeInput]) -> None:
        self.delegate.create(path, self._filter(path, inputs))

    def update(
        self, path: str, prev_input_names: Sequence[str], inputs: Sequence[MergeInput]
    ) -> None:
        self.delegate.update(path, prev_input_names, self._filter(path, inputs))

    def remove(self, path: str) -> None:
        self.delegate.remove(path)


__all__ = [
    "MergeOutput",
    "OutputDirectory",
    "AlgorithmOutput",
    "ProjectScopeOutput",
]
