"""
Persisted dependency store of the incremental compiler.

The store holds one ``DependencyData`` per main file and two indexes over
them: main file -> edge, and dependency file -> edges that read it. The
indexes are derived from the edges, so they always agree with them.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, Field

from ..core.fingerprints import FileFingerprint
from ..core.state import STATE_SCHEMA_VERSION
from .dependency import DependencyData


class CompileState(BaseModel):
    """
    On-disk form of the compiler state.

    Attributes:
        schema_version: Format version of the state file
        parameters: Key of the task parameters the state was produced with
        fingerprints: Input fingerprints of the last successful run
        dependencies: One edge per main file
    """

    schema_version: int = STATE_SCHEMA_VERSION
    parameters: str = ""
    fingerprints: dict[str, FileFingerprint] = Field(default_factory=dict)
    dependencies: list[DependencyData] = Field(default_factory=list)


class DependencyDataStore:
    """In-memory dependency graph with forward and reverse indexes."""

    def __init__(self, data: Iterable[DependencyData] = ()):
        self._main_files: dict[str, DependencyData] = {}
        self._reverse: dict[str, list[DependencyData]] | None = None
        self.add_data(data)

    def add_data(self, data: Iterable[DependencyData]) -> None:
        """Add edges; an edge for an already known main file replaces it."""
        for item in data:
            self._main_files[item.main_file] = item
        self._reverse = None

    def update_all(self, data: Iterable[DependencyData]) -> None:
        """Replace the edges of recompiled main files wholesale."""
        self.add_data(data)

    def remove(self, data: DependencyData) -> None:
        self._main_files.pop(data.main_file, None)
        self._reverse = None

    def get_main_file_map(self) -> dict[str, DependencyData]:
        return dict(self._main_files)

    def get(self, main_file: str) -> DependencyData | None:
        return self._main_files.get(main_file)

    def _reverse_index(self) -> dict[str, list[DependencyData]]:
        if self._reverse is None:
            reverse: dict[str, list[DependencyData]] = {}
            for main_file in sorted(self._main_files):
                data = self._main_files[main_file]
                for dep in data.dependency_files:
                    reverse.setdefault(dep, []).append(data)
            self._reverse = reverse
        return self._reverse

    def get_dependents(self, path: str) -> list[DependencyData]:
        """Edges that list ``path`` as a dependency (empty if untracked)."""
        return list(self._reverse_index().get(path, []))

    def dependency_paths(self) -> set[str]:
        return set(self._reverse_index())

    def all_data(self) -> list[DependencyData]:
        return [self._main_files[k] for k in sorted(self._main_files)]

    def __len__(self) -> int:
        return len(self._main_files)

    def __contains__(self, main_file: object) -> bool:
        return main_file in self._main_files

    @classmethod
    def from_state(cls, state: CompileState) -> "DependencyDataStore":
        return cls(state.dependencies)

    def to_state(
        self, parameters: str, fingerprints: dict[str, FileFingerprint]
    ) -> CompileState:
        return CompileState(
            parameters=parameters,
            fingerprints=dict(sorted(fingerprints.items())),
            dependencies=self.all_data(),
        )


__all__ = ["CompileState", "DependencyDataStore"]
