"""
Unit tests for merge planning and input views.
"""

import zipfile
from pathlib import Path

import pytest

from regen.merge.inputs import (
    ArchiveMergeInput,
    DirectoryMergeInput,
    FilterMergeInput,
    RenameMergeInput,
    Scope,
    open_input,
)
from regen.merge.planner import ContentType, accepted_paths_predicate, plan_inputs
from regen.merge.policy import PackagingOptions


def _tree(root: Path, files: dict[str, str]) -> Path:
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    return root


def _zip(path: Path, files: dict[str, str]) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        for rel, text in files.items():
            zf.writestr(rel, text)
    return path


class TestInputs:
    """Test directory, archive and view inputs."""

    def test_directory_input(self, tmp_path: Path) -> None:
        """Test listing and reading a directory."""
        root = _tree(tmp_path / "d", {"b/x.txt": "x", "a.txt": "a"})
        merge_input = DirectoryMergeInput(root)

        assert merge_input.paths() == ["a.txt", "b/x.txt"]
        assert merge_input.read("b/x.txt") == b"x"
        assert merge_input.is_directory

    def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        """Test that a missing directory provides nothing."""
        assert DirectoryMergeInput(tmp_path / "missing").paths() == []

    def test_archive_input(self, tmp_path: Path) -> None:
        """Test listing and reading an archive."""
        archive = _zip(tmp_path / "lib.jar", {"res/a.txt": "a", "META-INF/x": "m"})
        merge_input = ArchiveMergeInput(archive)

        assert merge_input.paths() == ["META-INF/x", "res/a.txt"]
        assert merge_input.read("res/a.txt") == b"a"
        assert not merge_input.is_directory
        assert merge_input.fingerprint("res/a.txt").startswith("1:")

    def test_open_input_picks_type(self, tmp_path: Path) -> None:
        """Test that directories and archives get the right input type."""
        directory = _tree(tmp_path / "d", {"a": "a"})
        archive = _zip(tmp_path / "a.zip", {"a": "a"})

        assert isinstance(open_input(directory), DirectoryMergeInput)
        assert isinstance(open_input(archive, Scope.PROJECT), ArchiveMergeInput)
        assert open_input(archive, Scope.PROJECT).scope is Scope.PROJECT

    def test_rename_and_filter_views(self, tmp_path: Path) -> None:
        """Test that views translate paths without copying."""
        base = DirectoryMergeInput(_tree(tmp_path / "d", {"x86/a.so": "so", "x86/b.txt": "t"}))
        renamed = RenameMergeInput(base, lambda p: "lib/" + p, lambda p: p[4:])
        filtered = FilterMergeInput(renamed, lambda p: p.endswith(".so"))

        assert filtered.paths() == ["lib/x86/a.so"]
        assert filtered.read("lib/x86/a.so") == b"so"
        assert filtered.name == base.name
        with pytest.raises(KeyError):
            filtered.open("lib/x86/b.txt")


class TestContentTypePredicates:
    """Test path acceptance per content type."""

    def test_resources(self) -> None:
        """Test that classes and native libs are not resources."""
        accept = accepted_paths_predicate(ContentType.RESOURCES)

        assert accept("res/a.png")
        assert accept("META-INF/services/x")
        assert not accept("com/example/A.class")
        assert not accept("lib/x86/libfoo.so")

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("lib/x86/libfoo.so", True),
            ("lib/armeabi-v7a/gdbserver", True),
            ("lib/arm64-v8a/gdb.setup", True),
            ("lib/x86/readme.txt", False),
            ("lib/libfoo.so", False),
            ("lib/x86/sub/libfoo.so", False),
            ("x86/libfoo.so", False),
        ],
    )
    def test_native_libs(self, path: str, expected: bool) -> None:
        """Test the lib/<abi>/<file> layout rule."""
        assert accepted_paths_predicate(ContentType.NATIVE_LIBS)(path) is expected


class TestPlanInputs:
    """Test ordering, renaming and filtering."""

    def test_project_inputs_first_and_stable(self, tmp_path: Path) -> None:
        """Test project scoped inputs move to the front in stable order."""
        inputs = [
            DirectoryMergeInput(tmp_path / "e1", Scope.EXTERNAL),
            DirectoryMergeInput(tmp_path / "p1", Scope.PROJECT),
            DirectoryMergeInput(tmp_path / "e2", Scope.EXTERNAL),
            DirectoryMergeInput(tmp_path / "p2", Scope.PROJECT),
        ]

        planned = plan_inputs(inputs, ContentType.RESOURCES, PackagingOptions())

        assert [Path(i.name).name for i in planned] == ["p1", "p2", "e1", "e2"]

    def test_excluded_paths_never_reach_the_merge(self, tmp_path: Path) -> None:
        """Test that excluded and rejected paths are filtered out."""
        root = _tree(tmp_path / "d", {"a.txt": "", "NOTICE": "", "A.class": ""})

        [planned] = plan_inputs(
            [DirectoryMergeInput(root)],
            ContentType.RESOURCES,
            PackagingOptions(exclude=("NOTICE",)),
        )

        assert planned.paths() == ["a.txt"]

    def test_native_lib_prefix_for_directories_only(self, tmp_path: Path) -> None:
        """Test that directory inputs gain the lib/ prefix and archives keep their paths."""
        directory = _tree(tmp_path / "jni", {"x86/libfoo.so": "f", "x86/notes.txt": ""})
        archive = _zip(tmp_path / "native.aar", {"lib/arm64-v8a/libbar.so": "b", "x86/libz.so": ""})

        planned = plan_inputs(
            [DirectoryMergeInput(directory), ArchiveMergeInput(archive)],
            ContentType.NATIVE_LIBS,
            PackagingOptions(),
        )

        assert planned[0].paths() == ["lib/x86/libfoo.so"]
        assert planned[0].read("lib/x86/libfoo.so") == b"f"
        assert planned[1].paths() == ["lib/arm64-v8a/libbar.so"]
