"""
Per-file compile operation.

The engine treats compilation as opaque: a ``FileCompiler`` compiles one main
file and reports what it read and wrote to a ``DependencySink``.
``CommandLineCompiler`` does this by running an external tool that writes a
Makefile-style dependency file.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Collection, Sequence
from pathlib import Path

from ..core.errors import CompilerError
from .dependency import DependencyData, DependencySink, parse_dependency_file

logger = logging.getLogger(__name__)


class FileCompiler(ABC):
    """Compiles one main file."""

    def parameters(self) -> dict[str, object]:
        """Settings that must force a full run when they change."""
        return {"compiler": type(self).__name__}

    @abstractmethod
    def compile(
        self,
        source_root: Path,
        file: Path,
        output_dir: Path,
        secondary_output_dir: Path | None,
        package_allowlist: Collection[str] | None,
        import_dirs: Sequence[Path],
        sink: DependencySink,
    ) -> None:
        """
        Compile ``file`` and report its dependency data to ``sink``.

        Args:
            source_root: Source root containing ``file``
            file: Main file to compile
            output_dir: Directory for primary outputs
            secondary_output_dir: Directory for packaged copies, if any
            package_allowlist: Packages allowed into the secondary directory
                (None allows every package)
            import_dirs: Import search path
            sink: Receiver of the dependency data

        Raises:
            CompilerError: If compilation fails
        """


def package_name(source_root: Path, file: Path) -> str:
    """Dotted package of ``file`` derived from its directory under the root."""
    return ".".join(file.relative_to(source_root).parent.parts)


def package_allowed(package: str, allowlist: Collection[str] | None) -> bool:
    return allowlist is None or package in allowlist


class CommandLineCompiler(FileCompiler):
    """
    Runs ``<command> -I<dir>... -d<depfile> -o<output_dir> <file>``.
    """

    def __init__(self, command: Sequence[str]):
        if not command:
            raise ValueError("command must not be empty")
        self.command = list(command)

    def parameters(self) -> dict[str, object]:
        return {"compiler": type(self).__name__, "command": self.command}

    def build_args(
        self, file: Path, output_dir: Path, import_dirs: Sequence[Path], dep_file: Path
    ) -> list[str]:
        return [
            *self.command,
            *(f"-I{d}" for d in import_dirs),
            f"-d{dep_file}",
            f"-o{output_dir}",
            str(file),
        ]

    def compile(
        self,
        source_root: Path,
        file: Path,
        output_dir: Path,
        secondary_output_dir: Path | None,
        package_allowlist: Collection[str] | None,
        import_dirs: Sequence[Path],
        sink: DependencySink,
    ) -> None:
        output_dir.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(prefix="regen-dep-") as tmp:
            dep_file = Path(tmp) / f"{file.stem}.d"
            args = self.build_args(file, output_dir, import_dirs, dep_file)
            logger.debug(f"Running: {' '.join(args)}")
            try:
                proc = subprocess.run(args, capture_output=True, text=True, check=False)
            except OSError as e:
                raise CompilerError(f"Failed to run {self.command[0]}: {e}") from e

            if proc.stdout:
                logger.debug(proc.stdout.rstrip())
            if proc.returncode != 0:
                raise CompilerError(
                    f"Compiling {file} failed with exit code {proc.returncode}:\n"
                    f"{proc.stderr.rstrip()}"
                )

            parsed = parse_dependency_file(dep_file) if dep_file.is_file() else None

        data = _normalize(file, parsed)

        if secondary_output_dir is not None:
            package = package_name(source_root, file)
            if package_allowed(package, package_allowlist):
                dest = secondary_output_dir / file.relative_to(source_root)
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(file, dest)
                data = data.model_copy(update={"secondary_output_files": [str(dest)]})

        sink.add(data)


def _normalize(file: Path, parsed: DependencyData | None) -> DependencyData:
    """Make every path absolute and pin the main file to ``file``."""
    if parsed is None:
        return DependencyData(main_file=str(file))
    main = str(file)
    itself = {main, str(file.resolve())}
    deps = [str(Path(p).resolve()) for p in parsed.dependency_files]
    return DependencyData(
        main_file=main,
        dependency_files=[d for d in dict.fromkeys(deps) if d not in itself],
        output_files=[str(Path(p).resolve()) for p in parsed.output_files],
    )


__all__ = [
    "FileCompiler",
    "CommandLineCompiler",
    "package_name",
    "package_allowed",
]
