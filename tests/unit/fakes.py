"""In-process test doubles for regen units of work."""

import re
import threading
from collections.abc import Collection, Sequence
from pathlib import Path

from regen.compiler.command import FileCompiler, package_allowed, package_name
from regen.compiler.dependency import DependencyData, DependencySink
from regen.core.errors import CompilerError

_IMPORT_RE = re.compile(r"^\s*import\s+([\w.]+)\s*;", re.MULTILINE)


class ImportScanningCompiler(FileCompiler):
    """
    In-process stand-in for an external compiler.

    Reads ``import a.b.C;`` lines, resolves them against the import search
    path, writes ``<name>.java`` under the output directory and reports the
    edge to the sink. A file containing ``syntax error`` fails to compile.
    """

    def __init__(self, flavor: str = "default"):
        self.flavor = flavor
        self.compiled: list[Path] = []
        self._lock = threading.Lock()

    def parameters(self) -> dict[str, object]:
        return {"compiler": type(self).__name__, "flavor": self.flavor}

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
        with self._lock:
            self.compiled.append(file)

        text = file.read_text()
        if "syntax error" in text:
            raise CompilerError(f"{file}: syntax error")

        deps: list[str] = []
        for name in _IMPORT_RE.findall(text):
            relative = Path(*name.split(".")).with_suffix(".aidl")
            for folder in import_dirs:
                candidate = folder / relative
                if candidate.is_file():
                    deps.append(str(candidate))
                    break

        out = output_dir / file.relative_to(source_root).with_suffix(".java")
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(f"// generated from {file.name}\n{text}")

        secondary: list[str] = []
        if secondary_output_dir is not None:
            if package_allowed(package_name(source_root, file), package_allowlist):
                dest = secondary_output_dir / file.relative_to(source_root)
                dest.parent.mkdir(parents=True, exist_ok=True)
                dest.write_text(text)
                secondary.append(str(dest))

        sink.add(
            DependencyData(
                main_file=str(file),
                dependency_files=deps,
                output_files=[str(out)],
                secondary_output_files=secondary,
            )
        )

    def compiled_names(self) -> list[str]:
        with self._lock:
            return sorted(f.name for f in self.compiled)

    def reset(self) -> None:
        with self._lock:
            self.compiled.clear()
