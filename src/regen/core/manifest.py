"""
Project configuration (regen.toml).

All relative paths are resolved against the directory holding the manifest.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..merge.inputs import Scope
from ..merge.planner import ContentType
from ..merge.policy import DEFAULT_EXCLUDES, PackagingOptions
from .errors import ConfigError
from .variants import VariantType

MANIFEST_NAME = "regen.toml"


@dataclass
class ProjectConfig:
    """Project-wide settings."""

    name: str
    variant: VariantType = VariantType.APPLICATION
    state_dir: Path = Path(".regen")
    workers: int = 4


@dataclass
class CompileConfig:
    """Incremental compiler settings."""

    source_dirs: list[Path]
    output_dir: Path
    import_dirs: list[Path] = field(default_factory=list)
    packaged_dir: Path | None = None  # library variants only
    package_allowlist: list[str] | None = None
    command: list[str] = field(default_factory=lambda: ["aidl"])
    pattern: str = "*.aidl"


@dataclass
class MergeInputConfig:
    """One merge contributor."""

    path: Path
    scope: Scope = Scope.EXTERNAL


@dataclass
class MergeConfig:
    """One merge unit."""

    name: str
    output_dir: Path
    content_type: ContentType = ContentType.RESOURCES
    inputs: list[MergeInputConfig] = field(default_factory=list)


@dataclass
class PackagingConfig:
    """Conflict policy shared by all merge units."""

    exclude: list[str] = field(default_factory=list)
    pick_first: list[str] = field(default_factory=list)
    merge: list[str] = field(default_factory=list)
    default_excludes: bool = True

    def to_options(self) -> PackagingOptions:
        exclude = [*DEFAULT_EXCLUDES, *self.exclude] if self.default_excludes else self.exclude
        return PackagingOptions(
            exclude=tuple(exclude),
            pick_first=tuple(self.pick_first),
            merge=tuple(self.merge),
        )


@dataclass
class RegenManifest:
    """Parsed regen.toml."""

    root: Path
    project: ProjectConfig
    compile: CompileConfig | None = None
    packaging: PackagingConfig = field(default_factory=PackagingConfig)
    merges: list[MergeConfig] = field(default_factory=list)

    def get_merge(self, name: str) -> MergeConfig:
        for merge in self.merges:
            if merge.name == name:
                return merge
        available = ", ".join(m.name for m in self.merges) or "none"
        raise ConfigError(f"Unknown merge unit '{name}'. Available: {available}")

    def unit_state_dir(self, unit: str) -> Path:
        """State directory of one unit of work."""
        return self.project.state_dir / self.project.variant.unit_name(unit)


def _enum(enum_type: Any, value: str, what: str) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_type)
        raise ConfigError(f"Invalid {what} '{value}'. Expected one of: {allowed}") from None


def _str_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of strings")
    return value


def _parse_compile(root: Path, data: dict[str, Any]) -> CompileConfig:
    source_dirs = _str_list(data, "source_dirs")
    if not source_dirs:
        raise ConfigError("[compile] requires at least one entry in source_dirs")
    if "output_dir" not in data:
        raise ConfigError("[compile] requires output_dir")

    packaged_dir = data.get("packaged_dir")
    allowlist = data.get("package_allowlist")
    return CompileConfig(
        source_dirs=[root / d for d in source_dirs],
        import_dirs=[root / d for d in _str_list(data, "import_dirs")],
        output_dir=root / data["output_dir"],
        packaged_dir=root / packaged_dir if packaged_dir else None,
        package_allowlist=_str_list(data, "package_allowlist") if allowlist is not None else None,
        command=_str_list(data, "command") or ["aidl"],
        pattern=data.get("pattern", "*.aidl"),
    )


def _parse_merge(root: Path, data: dict[str, Any]) -> MergeConfig:
    name = data.get("name")
    if not name:
        raise ConfigError("Every [[merge]] entry needs a name")
    if "output_dir" not in data:
        raise ConfigError(f"Merge '{name}' requires output_dir")

    inputs = []
    for entry in data.get("inputs", []):
        if isinstance(entry, str):
            entry = {"path": entry}
        if "path" not in entry:
            raise ConfigError(f"Merge '{name}' has an input without a path")
        inputs.append(
            MergeInputConfig(
                path=root / entry["path"],
                scope=_enum(Scope, entry.get("scope", "external"), "scope"),
            )
        )
    if not inputs:
        raise ConfigError(f"Merge '{name}' has no inputs")

    return MergeConfig(
        name=name,
        output_dir=root / data["output_dir"],
        content_type=_enum(ContentType, data.get("content_type", "resources"), "content type"),
        inputs=inputs,
    )


def load_manifest(path: Path) -> RegenManifest:
    """
    Load and validate a regen.toml file.

    Raises:
        ConfigError: If the file is missing, not valid TOML, or inconsistent
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigError(f"Manifest not found: {path}") from None
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    root = path.resolve().parent
    project_data = data.get("project", {})
    workers = project_data.get("workers", 4)
    if not isinstance(workers, int) or workers < 1:
        raise ConfigError("project.workers must be a positive integer")

    project = ProjectConfig(
        name=project_data.get("name", root.name),
        variant=_enum(VariantType, project_data.get("variant", "application"), "variant"),
        state_dir=root / project_data.get("state_dir", ".regen"),
        workers=workers,
    )

    compile_config = _parse_compile(root, data["compile"]) if "compile" in data else None

    packaging_data = data.get("packaging", {})
    packaging = PackagingConfig(
        exclude=_str_list(packaging_data, "exclude"),
        pick_first=_str_list(packaging_data, "pick_first"),
        merge=_str_list(packaging_data, "merge"),
        default_excludes=bool(packaging_data.get("default_excludes", True)),
    )

    merges = [_parse_merge(root, m) for m in data.get("merge", [])]
    names = [m.name for m in merges]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate merge unit names: {', '.join(duplicates)}")

    return RegenManifest(
        root=root,
        project=project,
        compile=compile_config,
        packaging=packaging,
        merges=merges,
    )


__all__ = [
    "MANIFEST_NAME",
    "ProjectConfig",
    "CompileConfig",
    "MergeInputConfig",
    "MergeConfig",
    "PackagingConfig",
    "RegenManifest",
    "load_manifest",
]
