"""
Project loading utilities.

Builds the units of work described by a regen.toml manifest.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .compiler.command import CommandLineCompiler, FileCompiler
from .compiler.task import IncrementalCompileTask
from .core.errors import ConfigError
from .core.executor import WorkerPool
from .core.manifest import MANIFEST_NAME, RegenManifest, load_manifest
from .merge.inputs import open_input
from .merge.task import MergeResourcesTask

logger = logging.getLogger(__name__)

COMPILE_UNIT = "compile"


def load_project(project_dir: Path | str, manifest_path: Path | str | None = None) -> RegenManifest:
    """
    Load the manifest of a project.

    Args:
        project_dir: Project root directory
        manifest_path: Optional explicit path to regen.toml. If not provided,
                       looks for regen.toml in project_dir.
    """
    project_dir = Path(project_dir).resolve()
    path = Path(manifest_path).resolve() if manifest_path else project_dir / MANIFEST_NAME
    return load_manifest(path)


def build_compile_task(
    manifest: RegenManifest,
    pool: WorkerPool,
    compiler: FileCompiler | None = None,
) -> IncrementalCompileTask:
    """
    Create the compile unit of a project.

    Packaged outputs are only produced for variants that publish them.

    Raises:
        ConfigError: If the manifest has no [compile] section
    """
    config = manifest.compile
    if config is None:
        raise ConfigError("regen.toml has no [compile] section")

    packaged_dir = config.packaged_dir
    allowlist = config.package_allowlist
    if not manifest.project.variant.publishes_packaged_sources:
        if packaged_dir is not None:
            logger.info(
                f"Ignoring packaged_dir for {manifest.project.variant.value} variant"
            )
        packaged_dir = None
        allowlist = None

    return IncrementalCompileTask(
        name=COMPILE_UNIT,
        source_dirs=config.source_dirs,
        import_dirs=config.import_dirs,
        output_dir=config.output_dir,
        compiler=compiler or CommandLineCompiler(config.command),
        state_dir=manifest.unit_state_dir(COMPILE_UNIT),
        pool=pool,
        packaged_dir=packaged_dir,
        package_allowlist=allowlist,
        pattern=config.pattern,
    )


def build_merge_task(manifest: RegenManifest, name: str, pool: WorkerPool) -> MergeResourcesTask:
    """Create one merge unit of a project."""
    config = manifest.get_merge(name)
    return MergeResourcesTask(
        name=config.name,
        inputs=[open_input(i.path, i.scope) for i in config.inputs],
        content_type=config.content_type,
        options=manifest.packaging.to_options(),
        output_dir=config.output_dir,
        state_dir=manifest.unit_state_dir(f"merge-{config.name}"),
        pool=pool,
    )


__all__ = ["COMPILE_UNIT", "load_project", "build_compile_task", "build_merge_task"]
