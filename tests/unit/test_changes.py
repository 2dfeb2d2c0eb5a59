"""
Unit tests for change detection.

Tests:
- File fingerprints and the mtime fast path
- Classification of new, changed and removed inputs
- ChangeSet summaries
"""

import os
from pathlib import Path

from regen.core.changes import ChangeSet, FileStatus, classify_changes
from regen.core.fingerprints import (
    FileFingerprint,
    InputRecord,
    InputRole,
    build_snapshot,
    compute_file_hash,
    discover_files,
    fingerprint_file,
)


def _fp(path: str, sha: str) -> FileFingerprint:
    return FileFingerprint(path=path, mtime_ns=1, size=1, sha256=sha)


def _record(path: str, sha: str) -> InputRecord:
    return InputRecord(fingerprint=_fp(path, sha), role=InputRole.SOURCE)


# =============================================================================
# Fingerprints
# =============================================================================


class TestFingerprints:
    """Test file fingerprinting."""

    def test_compute_file_hash(self, tmp_path: Path) -> None:
        """Test that identical content hashes identically."""
        a = tmp_path / "a.aidl"
        b = tmp_path / "b.aidl"
        a.write_text("interface IFoo {}")
        b.write_text("interface IFoo {}")

        assert len(compute_file_hash(a)) == 64
        assert compute_file_hash(a) == compute_file_hash(b)

    def test_fast_path_reuses_previous(self, tmp_path: Path) -> None:
        """Test that matching mtime and size skip rehashing."""
        f = tmp_path / "a.aidl"
        f.write_text("one")
        first = fingerprint_file(f)

        stale = first.model_copy(update={"sha256": "not-a-real-hash"})
        again = fingerprint_file(f, stale)

        assert again is stale

    def test_changed_size_rehashes(self, tmp_path: Path) -> None:
        """Test that a size change produces a fresh hash."""
        f = tmp_path / "a.aidl"
        f.write_text("one")
        first = fingerprint_file(f)

        f.write_text("three")
        second = fingerprint_file(f, first)

        assert not second.same_content(first)

    def test_touched_file_keeps_content_identity(self, tmp_path: Path) -> None:
        """Test that a touch without a content change keeps the same hash."""
        f = tmp_path / "a.aidl"
        f.write_text("one")
        first = fingerprint_file(f)

        os.utime(f, ns=(first.mtime_ns + 10**9, first.mtime_ns + 10**9))
        second = fingerprint_file(f, first)

        assert second.mtime_ns != first.mtime_ns
        assert second.same_content(first)

    def test_discover_files_sorted_and_skips_missing_roots(self, tmp_path: Path) -> None:
        """Test file discovery across roots."""
        (tmp_path / "src" / "b").mkdir(parents=True)
        (tmp_path / "src" / "b" / "Z.aidl").write_text("")
        (tmp_path / "src" / "A.aidl").write_text("")
        (tmp_path / "src" / "notes.txt").write_text("")

        files = discover_files([tmp_path / "src", tmp_path / "missing"], "*.aidl")

        assert [f.name for f in files] == ["A.aidl", "Z.aidl"]

    def test_build_snapshot_keys_and_role(self, tmp_path: Path) -> None:
        """Test snapshot keys are absolute path strings."""
        f = tmp_path / "A.aidl"
        f.write_text("x")

        snapshot = build_snapshot([f], InputRole.IMPORT)

        assert list(snapshot) == [str(f)]
        assert snapshot[str(f)].role is InputRole.IMPORT
        assert snapshot[str(f)].path == str(f)


# =============================================================================
# Classification
# =============================================================================


class TestClassifyChanges:
    """Test change classification."""

    def test_no_changes(self) -> None:
        """Test identical snapshots produce no changes."""
        previous = {"/a": _fp("/a", "1")}
        current = {"/a": _record("/a", "1")}

        assert classify_changes(previous, current) == {}

    def test_new_changed_removed(self) -> None:
        """Test every status is detected."""
        previous = {"/a": _fp("/a", "1"), "/b": _fp("/b", "2")}
        current = {"/a": _record("/a", "1*"), "/c": _record("/c", "3")}

        changes = classify_changes(previous, current)

        assert changes == {
            Path("/a"): FileStatus.CHANGED,
            Path("/b"): FileStatus.REMOVED,
            Path("/c"): FileStatus.NEW,
        }

    def test_result_is_sorted(self) -> None:
        """Test the mapping iterates in path order."""
        current = {"/z": _record("/z", "1"), "/a": _record("/a", "2")}

        assert list(classify_changes({}, current)) == [Path("/a"), Path("/z")]

    def test_metadata_only_change_is_ignored(self) -> None:
        """Test that equal hashes with different mtime are not a change."""
        previous = {"/a": FileFingerprint(path="/a", mtime_ns=1, size=3, sha256="h")}
        current = {
            "/a": InputRecord(
                fingerprint=FileFingerprint(path="/a", mtime_ns=99, size=3, sha256="h"),
                role=InputRole.SOURCE,
            )
        }

        assert classify_changes(previous, current) == {}


class TestChangeSet:
    """Test ChangeSet reporting."""

    def test_empty(self) -> None:
        """Test an empty change set."""
        change_set = ChangeSet.from_changes({})

        assert change_set.is_empty()
        assert change_set.summary() == "  No changes"

    def test_summary(self) -> None:
        """Test the summary counts."""
        change_set = ChangeSet.from_changes(
            {
                Path("/a"): FileStatus.NEW,
                Path("/b"): FileStatus.NEW,
                Path("/c"): FileStatus.REMOVED,
            }
        )

        assert change_set.added == {"/a", "/b"}
        assert change_set.removed == {"/c"}
        assert "+2" in change_set.summary()
        assert "-1" in change_set.summary()
        assert "~" not in change_set.summary()
