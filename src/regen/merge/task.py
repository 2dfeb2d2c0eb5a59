"""
Merge unit of work.

Decides between a full and an incremental merge, runs the merger over the
planned inputs and keeps the state file in step with the outputs.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from ..core.errors import ConfigError
from ..core.executor import WorkerPool
from ..core.report import RunReport
from ..core.state import StateLoadStatus, StateStore, parameters_key
from .inputs import MergeInput
from .merger import MergeState, merge
from .output import AlgorithmOutput, OutputDirectory, ProjectScopeOutput
from .planner import ContentType, plan_inputs
from .policy import PackagingOptions

logger = logging.getLogger(__name__)

MERGE_STATE_FILE = "merge-state.json"


class MergeResourcesTask:
    """Merges many inputs into one output directory, incrementally when possible."""

    def __init__(
        self,
        name: str,
        inputs: Sequence[MergeInput],
        content_type: ContentType,
        options: PackagingOptions,
        output_dir: Path,
        state_dir: Path,
        pool: WorkerPool,
    ):
        """
        Initialize a merge task.

        Args:
            name: Unit name, used in logs and reports
            inputs: All current inputs, in their natural order
            content_type: What the merge produces
            options: Packaging options of the run
            output_dir: Directory receiving the merged files
            state_dir: Directory holding this unit's state file
            pool: Worker pool for the write pass
        """
        self.name = name
        self.inputs = list(inputs)
        self.content_type = content_type
        self.options = options
        self.output_dir = output_dir
        self.state_store: StateStore[MergeState] = StateStore(
            state_dir / MERGE_STATE_FILE, MergeState
        )
        self.pool = pool

    def parameters(self) -> dict[str, object]:
        return {
            "content_type": self.content_type.value,
            "output_dir": str(self.output_dir),
            **self.options.parameters(),
        }

    def _check_inputs(self) -> None:
        seen: set[str] = set()
        for merge_input in self.inputs:
            if merge_input.name in seen:
                raise ConfigError(f"Merge '{self.name}' lists input '{merge_input.name}' twice")
            seen.add(merge_input.name)

    def _previous_state(self, key: str, incremental: bool) -> tuple[MergeState | None, str | None]:
        """Return the reusable previous state, or None with the reason for a full run."""
        if not incremental:
            return None, "incremental run disabled"

        loaded = self.state_store.load()
        if loaded.status is StateLoadStatus.NOT_FOUND:
            return None, "no previous state"
        if loaded.status is StateLoadStatus.CORRUPT:
            logger.warning(f"Failed to read merge state for {self.name}: full task run!")
            self.state_store.clear()
            return None, "corrupt state"
        state = loaded.loaded_state
        if state.parameters != key:
            return None, "parameters changed"
        return state, None

    def run(self, incremental: bool = True) -> RunReport:
        """
        Run the merge.

        Args:
            incremental: Allow reuse of the previous state

        Returns:
            RunReport describing what was written

        Raises:
            ConfigError: If an input is listed twice
            UnitExecutionError: If a write fails; the state file is deleted
        """
        self._check_inputs()
        key = parameters_key(self.parameters())
        directory = OutputDirectory(self.output_dir)

        state, reason = self._previous_state(key, incremental)
        full = state is None
        if state is None:
            logger.info(f"{self.name}: full merge ({reason})")
            state = MergeState(parameters=key)
            directory.clean()
        else:
            logger.info(f"{self.name}: incremental merge")

        planned = plan_inputs(self.inputs, self.content_type, self.options)
        output = ProjectScopeOutput(AlgorithmOutput(self.options, directory), self.options)

        try:
            result = merge(planned, output, state, self.pool)
        except Exception:
            self.state_store.clear()
            raise

        self.state_store.save(result.state)

        return RunReport(
            unit=self.name,
            full=full,
            reason=reason,
            processed=result.created + result.updated,
            removed=result.removed,
        )


__all__ = ["MERGE_STATE_FILE", "MergeResourcesTask"]
