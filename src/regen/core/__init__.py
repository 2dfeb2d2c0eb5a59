"""Core regen functionality: change detection, persisted state, parallel execution."""

from .changes import ChangeSet, FileStatus, classify_changes
from .errors import (
    CompilerError,
    ConfigError,
    ConflictError,
    DependencyResolutionError,
    ErrorContext,
    RegenError,
    StateError,
    UnitExecutionError,
)
from .executor import WaitableExecutor, WorkerPool
from .fingerprints import FileFingerprint, InputRecord, InputRole
from .report import RunReport
from .state import StateLoadResult, StateLoadStatus, StateStore, parameters_key

__all__ = [
    "ChangeSet",
    "FileStatus",
    "classify_changes",
    "RegenError",
    "StateError",
    "ConfigError",
    "CompilerError",
    "DependencyResolutionError",
    "ConflictError",
    "UnitExecutionError",
    "ErrorContext",
    "WorkerPool",
    "WaitableExecutor",
    "FileFingerprint",
    "InputRecord",
    "InputRole",
    "RunReport",
    "StateStore",
    "StateLoadResult",
    "StateLoadStatus",
    "parameters_key",
]
