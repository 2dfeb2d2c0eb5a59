"""
Incremental compile unit of work.

A full run cleans the outputs, compiles every main file and records a fresh
dependency store. An incremental run classifies the input changes against the
stored fingerprints, recompiles the affected main files, deletes the outputs
of removed ones and patches the store. Any failure deletes the state file so
that the next run is a full one.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Collection, Sequence
from pathlib import Path

from ..core.changes import ChangeSet, classify_changes
from ..core.executor import WaitableExecutor, WorkerPool
from ..core.fingerprints import (
    FileFingerprint,
    InputRecord,
    InputRole,
    build_snapshot,
    discover_files,
)
from ..core.report import RunReport
from ..core.state import StateLoadStatus, StateStore, parameters_key
from .command import FileCompiler
from .dependency import DependencyData, DependencySink
from .invalidator import InvalidationPlan, find_source_root, plan_invalidation
from .store import CompileState, DependencyDataStore

logger = logging.getLogger(__name__)

DEPENDENCY_STORE = "dependency-store.json"


def clean_output_dir(directory: Path) -> None:
    """Delete everything under ``directory`` and recreate it empty."""
    if directory.exists():
        shutil.rmtree(directory)
    directory.mkdir(parents=True, exist_ok=True)


def delete_outputs(data: DependencyData) -> None:
    """Delete the primary and secondary outputs recorded for one main file."""
    for output in data.all_outputs():
        Path(output).unlink(missing_ok=True)


class IncrementalCompileTask:
    """Compiles the main files under a set of source roots, incrementally when possible."""

    def __init__(
        self,
        name: str,
        source_dirs: Sequence[Path],
        import_dirs: Sequence[Path],
        output_dir: Path,
        compiler: FileCompiler,
        state_dir: Path,
        pool: WorkerPool,
        packaged_dir: Path | None = None,
        package_allowlist: Collection[str] | None = None,
        pattern: str = "*.aidl",
    ):
        """
        Initialize a compile task.

        Args:
            name: Unit name, used in logs and reports
            source_dirs: Roots holding the main files
            import_dirs: Extra roots searched for imports only
            output_dir: Directory for primary outputs
            compiler: Per-file compile operation
            state_dir: Directory holding this unit's state file
            pool: Worker pool running the compile units
            packaged_dir: Directory for packaged (secondary) outputs
            package_allowlist: Packages allowed into ``packaged_dir``
            pattern: Glob selecting main files and import files
        """
        self.name = name
        self.source_dirs = [d.resolve() for d in source_dirs]
        self.import_dirs = [d.resolve() for d in import_dirs]
        self.output_dir = output_dir.resolve()
        self.packaged_dir = packaged_dir.resolve() if packaged_dir is not None else None
        self.package_allowlist = (
            sorted(package_allowlist) if package_allowlist is not None else None
        )
        self.pattern = pattern
        self.compiler = compiler
        self.pool = pool
        self.state_store: StateStore[CompileState] = StateStore(
            state_dir / DEPENDENCY_STORE, CompileState
        )

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def parameters(self) -> dict[str, object]:
        return {
            "source_dirs": [str(d) for d in self.source_dirs],
            "import_dirs": [str(d) for d in self.import_dirs],
            "output_dir": str(self.output_dir),
            "packaged_dir": str(self.packaged_dir) if self.packaged_dir else None,
            "package_allowlist": self.package_allowlist,
            "pattern": self.pattern,
            **self.compiler.parameters(),
        }

    def source_files(self) -> list[Path]:
        return discover_files(self.source_dirs, self.pattern)

    def import_folders(self) -> list[Path]:
        """Import search path: import dirs first, then the source dirs."""
        return [*self.import_dirs, *self.source_dirs]

    def snapshot(
        self, previous: dict[str, FileFingerprint] | None = None
    ) -> dict[str, InputRecord]:
        sources = self.source_files()
        source_set = set(sources)
        imports = [p for p in discover_files(self.import_dirs, self.pattern) if p not in source_set]
        snapshot = build_snapshot(sources, InputRole.SOURCE, previous)
        snapshot.update(build_snapshot(imports, InputRole.IMPORT, previous))
        return snapshot

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def _previous_state(
        self, key: str, incremental: bool
    ) -> tuple[CompileState | None, str | None]:
        """Return the reusable previous state, or None with the reason for a full run."""
        if not incremental:
            return None, "incremental run disabled"

        loaded = self.state_store.load()
        if loaded.status is StateLoadStatus.NOT_FOUND:
            return None, "no previous state"
        if loaded.status is StateLoadStatus.CORRUPT:
            logger.warning(f"Failed to read dependency store for {self.name}: full task run!")
            self.state_store.clear()
            return None, "corrupt state"
        state = loaded.loaded_state
        if state.parameters != key:
            return None, "parameters changed"
        return state, None

    def run(self, incremental: bool = True) -> RunReport:
        """
        Run the unit of work.

        Args:
            incremental: Allow reuse of the previous state

        Returns:
            RunReport describing what was compiled and removed

        Raises:
            DependencyResolutionError: If a file to compile is outside every source root
            UnitExecutionError: If a compile unit fails
        """
        key = parameters_key(self.parameters())
        state, reason = self._previous_state(key, incremental)

        try:
            if state is None:
                logger.info(f"{self.name}: full run ({reason})")
                report = self._full_run(key)
                report.reason = reason
            else:
                logger.info(f"{self.name}: incremental run")
                report = self._incremental_run(key, state)
        except Exception:
            self.state_store.clear()
            raise

        return report

    def _compile_one(self, source_root: Path, file: Path, sink: DependencySink) -> None:
        logger.debug(f"Compiling {file}")
        self.compiler.compile(
            source_root,
            file,
            self.output_dir,
            self.packaged_dir,
            self.package_allowlist,
            self.import_folders(),
            sink,
        )

    def _dispatch_compiles(
        self, executor: WaitableExecutor, files: list[Path], sink: DependencySink
    ) -> None:
        # Resolve every root first so a resolution error aborts before any unit runs.
        units = [(find_source_root(f, self.source_dirs), f) for f in files]
        for source_root, file in units:
            executor.execute(self._compile_one, source_root, file, sink)

    def _full_run(self, key: str) -> RunReport:
        clean_output_dir(self.output_dir)
        if self.packaged_dir is not None:
            clean_output_dir(self.packaged_dir)

        snapshot = self.snapshot()
        files = [Path(k) for k, r in snapshot.items() if r.role is InputRole.SOURCE]

        sink = DependencySink()
        executor = WaitableExecutor(self.pool)
        self._dispatch_compiles(executor, files, sink)
        executor.wait_for_tasks_with_quick_fail(cancel_remaining=True)

        store = DependencyDataStore(sink.collected())
        self._save(store, key, snapshot)

        return RunReport(unit=self.name, full=True, processed=[str(f) for f in files])

    def _incremental_run(self, key: str, state: CompileState) -> RunReport:
        store = DependencyDataStore.from_state(state)
        snapshot = self.snapshot(state.fingerprints)
        changes = classify_changes(state.fingerprints, snapshot)

        change_set = ChangeSet.from_changes(changes)
        logger.info(f"{self.name}: changes detected\n{change_set.summary()}")

        plan = plan_invalidation(changes, store, self.source_dirs)
        self._execute_plan(plan, store)

        self._save(store, key, snapshot)

        return RunReport(
            unit=self.name,
            full=False,
            processed=[str(f) for f in plan.to_compile],
            removed=[d.main_file for d in plan.to_remove],
        )

    def _execute_plan(self, plan: InvalidationPlan, store: DependencyDataStore) -> None:
        if plan.is_empty():
            return

        sink = DependencySink()
        executor = WaitableExecutor(self.pool)
        self._dispatch_compiles(executor, plan.to_compile, sink)
        for data in plan.to_remove:
            logger.debug(f"Removing outputs of {data.main_file}")
            executor.execute(delete_outputs, data)
            store.remove(data)
        executor.wait_for_tasks_with_quick_fail(cancel_remaining=True)

        recompiled = sink.collected()
        for data in recompiled:
            previous = store.get(data.main_file)
            if previous is not None:
                # Outputs the file no longer produces.
                stale = set(previous.all_outputs()) - set(data.all_outputs())
                for output in sorted(stale):
                    Path(output).unlink(missing_ok=True)
        store.update_all(recompiled)

    def _save(
        self, store: DependencyDataStore, key: str, snapshot: dict[str, InputRecord]
    ) -> None:
        fingerprints = {k: r.fingerprint for k, r in snapshot.items()}
        self.state_store.save(store.to_state(key, fingerprints))


__all__ = ["DEPENDENCY_STORE", "IncrementalCompileTask", "clean_output_dir", "delete_outputs"]
