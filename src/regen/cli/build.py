"""
regen build commands.

- compile: run the incremental compile unit
- merge:   run one or all merge units
- status:  show the persisted state of every unit
- clean:   delete all persisted state (forces full runs)
"""

from __future__ import annotations

import shutil
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from regen.compiler.store import CompileState
from regen.compiler.task import DEPENDENCY_STORE
from regen.core.errors import RegenError, UnitExecutionError
from regen.core.executor import WorkerPool
from regen.core.manifest import RegenManifest
from regen.core.report import RunReport
from regen.core.state import StateStore
from regen.merge.merger import MergeState
from regen.merge.task import MERGE_STATE_FILE
from regen.project import COMPILE_UNIT, build_compile_task, build_merge_task, load_project

from .utils import configure_logging

console = Console()


def _load(manifest: str) -> RegenManifest:
    manifest_path = Path(manifest).resolve()
    return load_project(manifest_path.parent, manifest_path)


def _fail(error: RegenError) -> None:
    typer.echo(f"Error: {error}", err=True)
    if isinstance(error, UnitExecutionError) and error.cause is not None:
        typer.echo(f"Caused by: {type(error.cause).__name__}: {error.cause}", err=True)
    raise typer.Exit(code=1)


def _print_report(report: RunReport) -> None:
    style = "yellow" if report.full else "green"
    console.print(f"[{style}]{report.summary()}[/{style}]")


def compile_command(
    manifest: str = typer.Option("regen.toml", "--manifest", "-m"),
    full: bool = typer.Option(False, "--full", help="Force a full run (ignore previous state)"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """
    Compile changed files and everything that imports them.
    """
    configure_logging(verbose)
    try:
        mf = _load(manifest)
        with WorkerPool(mf.project.workers) as pool:
            report = build_compile_task(mf, pool).run(incremental=not full)
    except RegenError as e:
        _fail(e)
        return

    _print_report(report)


def merge_command(
    names: list[str] | None = typer.Argument(None, help="Merge units to run (default: all)"),
    manifest: str = typer.Option("regen.toml", "--manifest", "-m"),
    full: bool = typer.Option(False, "--full", help="Force a full run (ignore previous state)"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """
    Merge inputs into their output directories.
    """
    configure_logging(verbose)
    try:
        mf = _load(manifest)
        selected = names or [m.name for m in mf.merges]
        if not selected:
            typer.echo("No merge units defined in manifest")
            return
        reports = []
        with WorkerPool(mf.project.workers) as pool:
            for name in selected:
                reports.append(build_merge_task(mf, name, pool).run(incremental=not full))
    except RegenError as e:
        _fail(e)
        return

    for report in reports:
        _print_report(report)


def _unit_stores(mf: RegenManifest) -> list[tuple[str, StateStore]]:
    stores: list[tuple[str, StateStore]] = []
    if mf.compile is not None:
        path = mf.unit_state_dir(COMPILE_UNIT) / DEPENDENCY_STORE
        stores.append((COMPILE_UNIT, StateStore(path, CompileState)))
    for merge in mf.merges:
        path = mf.unit_state_dir(f"merge-{merge.name}") / MERGE_STATE_FILE
        stores.append((f"merge {merge.name}", StateStore(path, MergeState)))
    return stores


def status_command(
    manifest: str = typer.Option("regen.toml", "--manifest", "-m"),
) -> None:
    """
    Show the persisted state of every unit of work.
    """
    try:
        mf = _load(manifest)
    except RegenError as e:
        _fail(e)
        return

    table = Table(title=f"{mf.project.name} ({mf.project.variant.value})")
    table.add_column("Unit", no_wrap=True)
    table.add_column("State", no_wrap=True)
    table.add_column("Entries", justify="right", no_wrap=True)
    table.add_column("File", overflow="fold")

    for unit, store in _unit_stores(mf):
        loaded = store.load()
        entries = ""
        if isinstance(loaded.state, CompileState):
            entries = str(len(loaded.state.dependencies))
        elif isinstance(loaded.state, MergeState):
            entries = str(len(loaded.state.outputs))
        table.add_row(unit, loaded.status.value, entries, str(store.path))

    console.print(table)


def clean_command(
    manifest: str = typer.Option("regen.toml", "--manifest", "-m"),
) -> None:
    """
    Delete all persisted state. The next run of every unit is a full run.
    """
    try:
        mf = _load(manifest)
    except RegenError as e:
        _fail(e)
        return

    state_dir = mf.project.state_dir
    if state_dir.exists():
        shutil.rmtree(state_dir)
        typer.echo(f"Removed {state_dir}")
    else:
        typer.echo("Nothing to clean")
