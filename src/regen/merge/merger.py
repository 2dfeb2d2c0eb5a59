"""
Incremental file merger.

Given the planned inputs and the state of the previous merge, works out
which output paths are affected and issues one create/update/remove per
affected path. The per-path writes are dispatched to the worker pool; the
contributor order of each path is fixed before dispatch.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from ..core.executor import WaitableExecutor, WorkerPool
from ..core.state import STATE_SCHEMA_VERSION
from .inputs import MergeInput, Scope
from .output import MergeOutput

logger = logging.getLogger(__name__)


class MergeInputState(BaseModel):
    """Paths of one input and their fingerprints, as seen by a merge."""

    name: str
    scope: Scope | None = None
    paths: dict[str, str] = Field(default_factory=dict)


class MergeState(BaseModel):
    """
    Persisted state of a merge unit.

    Attributes:
        schema_version: Format version of the state file
        parameters: Key of the task parameters the state was produced with
        inputs: Inputs of the last merge, in planned order
        outputs: For every produced path, the names of its contributors in order
    """

    schema_version: int = STATE_SCHEMA_VERSION
    parameters: str = ""
    inputs: list[MergeInputState] = Field(default_factory=list)
    outputs: dict[str, list[str]] = Field(default_factory=dict)


@dataclass
class MergeResult:
    """New state plus the paths touched by a merge."""

    state: MergeState
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


def snapshot_inputs(inputs: Sequence[MergeInput]) -> list[MergeInputState]:
    return [
        MergeInputState(
            name=i.name, scope=i.scope, paths={p: i.fingerprint(p) for p in i.paths()}
        )
        for i in inputs
    ]


def merge(
    inputs: Sequence[MergeInput],
    output: MergeOutput,
    state: MergeState,
    pool: WorkerPool,
) -> MergeResult:
    """
    Merge the inputs into the output, reusing what the previous state allows.

    An empty ``state`` makes every produced path a ``create``.

    Args:
        inputs: Planned inputs (ordered, renamed, filtered)
        output: Receiver of the per-path decisions
        state: State of the previous merge
        pool: Worker pool running the per-path writes

    Returns:
        MergeResult with the new state

    Raises:
        UnitExecutionError: If any per-path write fails
    """
    current = snapshot_inputs(inputs)
    previous = {s.name: s.paths for s in state.inputs}
    # Every path of a contributor whose scope changed is re-merged.
    previous_scopes = {s.name: s.scope for s in state.inputs}
    rescoped = {
        s.name
        for s in current
        if s.name in previous_scopes and previous_scopes[s.name] != s.scope
    }

    contributors: dict[str, list[MergeInput]] = {}
    for merge_input, snapshot in zip(inputs, current):
        for path in snapshot.paths:
            contributors.setdefault(path, []).append(merge_input)

    content_changed: set[str] = set()
    for snapshot in current:
        old_paths = previous.get(snapshot.name)
        if old_paths is None:
            continue
        for path, fp in snapshot.paths.items():
            if old_paths.get(path, fp) != fp:
                content_changed.add(path)

    result = MergeResult(state=state)
    executor = WaitableExecutor(pool)

    for path in sorted(set(contributors) | set(state.outputs)):
        path_inputs = contributors.get(path, [])
        names = [i.name for i in path_inputs]
        prev_names = state.outputs.get(path)

        if not path_inputs:
            result.removed.append(path)
            executor.execute(output.remove, path)
        elif prev_names is None:
            result.created.append(path)
            executor.execute(output.create, path, path_inputs)
        elif (
            prev_names != names
            or path in content_changed
            or any(name in rescoped for name in names)
        ):
            result.updated.append(path)
            executor.execute(output.update, path, prev_names, path_inputs)

    executor.wait_for_tasks_with_quick_fail(cancel_remaining=True)

    logger.info(
        f"Merged {len(contributors)} path(s): {len(result.created)} created, "
        f"{len(result.updated)} updated, {len(result.removed)} removed"
    )

    result.state = MergeState(
        parameters=state.parameters,
        inputs=current,
        outputs={path: [i.name for i in ins] for path, ins in sorted(contributors.items())},
    )
    return result


__all__ = [
    "MergeInputState",
    "MergeState",
    "MergeResult",
    "snapshot_inputs",
    "merge",
]
