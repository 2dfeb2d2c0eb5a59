"""
Dependency data produced by compiling one main file.

A compile unit reports what it read and what it wrote as a
``DependencyData`` record, usually parsed from the Makefile-style dependency
file the compiler writes next to its outputs::

    out/com/example/IFoo.java : \\
      src/com/example/IFoo.aidl \\
      src/com/example/Bar.aidl
"""

from __future__ import annotations

import threading
from pathlib import Path

from pydantic import BaseModel, Field


class DependencyData(BaseModel):
    """
    Dependency edge of one main file.

    Attributes:
        main_file: The compiled file
        dependency_files: Files read while compiling it (imports)
        output_files: Primary outputs
        secondary_output_files: Packaged copies and other secondary outputs
    """

    main_file: str
    dependency_files: list[str] = Field(default_factory=list)
    output_files: list[str] = Field(default_factory=list)
    secondary_output_files: list[str] = Field(default_factory=list)

    def all_outputs(self) -> list[str]:
        return [*self.output_files, *self.secondary_output_files]


def parse_dependency_text(text: str) -> DependencyData | None:
    """
    Parse the content of a dependency file.

    Returns:
        DependencyData, or None if the text names no main file
    """
    tokens = text.replace("\\\r\n", " ").replace("\\\n", " ").split()

    outputs: list[str] = []
    inputs: list[str] = []
    seen_colon = False
    for token in tokens:
        if seen_colon:
            inputs.append(token)
        elif token == ":":
            seen_colon = True
        elif token.endswith(":"):
            outputs.append(token[:-1])
            seen_colon = True
        else:
            outputs.append(token)

    if not seen_colon or not inputs:
        return None

    return DependencyData(
        main_file=inputs[0],
        dependency_files=inputs[1:],
        output_files=outputs,
    )


def parse_dependency_file(path: Path) -> DependencyData | None:
    """Read and parse a dependency file; see ``parse_dependency_text``."""
    return parse_dependency_text(path.read_text(encoding="utf-8"))


class DependencySink:
    """
    Append-only collection of dependency data shared by concurrent compile units.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: list[DependencyData] = []

    def add(self, data: DependencyData) -> None:
        with self._lock:
            self._data.append(data)

    def process_file(self, dependency_file: Path) -> DependencyData | None:
        """Parse a dependency file and record its data, if any."""
        data = parse_dependency_file(dependency_file)
        if data is not None:
            self.add(data)
        return data

    def collected(self) -> list[DependencyData]:
        with self._lock:
            return list(self._data)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


__all__ = [
    "DependencyData",
    "DependencySink",
    "parse_dependency_text",
    "parse_dependency_file",
]
