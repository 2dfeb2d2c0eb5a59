"""Incremental compiler: dependency store, invalidation and the compile unit of work."""

from .command import CommandLineCompiler, FileCompiler
from .dependency import DependencyData, DependencySink, parse_dependency_file
from .invalidator import InvalidationPlan, find_source_root, plan_invalidation
from .store import CompileState, DependencyDataStore
from .task import IncrementalCompileTask

__all__ = [
    "FileCompiler",
    "CommandLineCompiler",
    "DependencyData",
    "DependencySink",
    "parse_dependency_file",
    "InvalidationPlan",
    "find_source_root",
    "plan_invalidation",
    "CompileState",
    "DependencyDataStore",
    "IncrementalCompileTask",
]
