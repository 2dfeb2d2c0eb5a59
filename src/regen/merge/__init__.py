"""Multi-input merge: planning, conflict resolution and the merge unit of work."""

from .inputs import (
    ArchiveMergeInput,
    DirectoryMergeInput,
    FilterMergeInput,
    MergeInput,
    RenameMergeInput,
    Scope,
    open_input,
)
from .merger import MergeResult, MergeState, merge
from .output import AlgorithmOutput, MergeOutput, OutputDirectory, ProjectScopeOutput
from .planner import ContentType, plan_inputs
from .policy import PackagingAction, PackagingOptions
from .task import MergeResourcesTask

__all__ = [
    "MergeInput",
    "DirectoryMergeInput",
    "ArchiveMergeInput",
    "RenameMergeInput",
    "FilterMergeInput",
    "Scope",
    "open_input",
    "MergeState",
    "MergeResult",
    "merge",
    "MergeOutput",
    "OutputDirectory",
    "AlgorithmOutput",
    "ProjectScopeOutput",
    "ContentType",
    "plan_inputs",
    "PackagingAction",
    "PackagingOptions",
    "MergeResourcesTask",
]
