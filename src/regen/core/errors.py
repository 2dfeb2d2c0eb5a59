"""
Error types for regen state handling, dependency resolution, and unit execution.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class RegenError(Exception):
    """Base exception for all regen errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class StateError(RegenError):
    """
    Raised when persisted state is missing, unreadable, or cannot be written.

    Missing and corrupt state are recovered locally by discarding the state
    and falling back to a full run; callers of the tasks never see this.
    """

    pass


class ConfigError(RegenError):
    """
    Raised when regen.toml is invalid.

    Examples:
    - Unknown variant type
    - Unknown merge content type
    - Merge unit without inputs
    """

    pass


class CompilerError(RegenError):
    """
    Raised when compiling one file fails.

    Examples:
    - Compiler exits with a non-zero status
    - Compiler cannot be started
    """

    pass


class DependencyResolutionError(RegenError):
    """
    Raised when a file cannot be mapped to any configured source root.

    This is a contract violation upstream and is never retried.
    """

    pass


class ConflictError(RegenError):
    """
    Raised when several inputs contribute to a path that accepts only one.

    Attributes:
        path: Output path with conflicting contributors
        input_names: Names of the contributors, in input order
    """

    def __init__(self, path: str, input_names: list[str]):
        self.path = path
        self.input_names = list(input_names)
        super().__init__(
            f"More than one file was found with OS independent path '{path}'. "
            f"Sources: {', '.join(self.input_names)}"
        )


class UnitExecutionError(RegenError):
    """
    Raised when a parallel unit of work fails.

    The original exception is available as ``cause`` and is also chained
    through ``__cause__``.
    """

    def __init__(self, message: str, cause: BaseException):
        self.cause = cause
        super().__init__(f"{message}: {cause}")


@dataclass
class ErrorContext:
    """
    Context information for an error.

    Attributes:
        file: Path of the file the error relates to
        detail: Optional extra detail (source root list, input name, ...)
    """

    file: Path
    detail: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "src/aidl/IFoo.aidl (roots: src/aidl)"
        """
        if self.detail:
            return f"{self.file} ({self.detail})"
        return str(self.file)


def make_resolution_error(file: Path, roots: list[Path]) -> DependencyResolutionError:
    """
    Helper to create a DependencyResolutionError with context.

    Args:
        file: File that is outside every source root
        roots: Configured source roots

    Returns:
        DependencyResolutionError with attached context
    """
    detail = "roots: " + ", ".join(str(r) for r in roots) if roots else "no source roots"
    return DependencyResolutionError(
        f"File '{file}' is not in a source dir",
        context=ErrorContext(file=file, detail=detail),
    )


__all__ = [
    "RegenError",
    "StateError",
    "ConfigError",
    "CompilerError",
    "DependencyResolutionError",
    "ConflictError",
    "UnitExecutionError",
    "ErrorContext",
    "make_resolution_error",
]
