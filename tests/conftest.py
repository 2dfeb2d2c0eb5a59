"""Shared pytest fixtures for regen tests."""

import os
import shutil
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from regen.core.executor import WorkerPool


@pytest.fixture
def pool() -> Iterator[WorkerPool]:
    """Return a worker pool that is shut down after the test."""
    with WorkerPool(4) as p:
        yield p


@pytest.fixture
def edit_file() -> Callable[[Path, str | bytes], None]:
    """
    Return a helper that rewrites a file and moves its mtime forward.

    Rewrites within the same clock tick would otherwise look unchanged to the
    mtime and size fast path.
    """

    def _edit(path: Path, content: str | bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        previous = path.stat().st_mtime_ns if path.exists() else 0
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
        bumped = max(previous, path.stat().st_mtime_ns) + 1_000_000_000
        os.utime(path, ns=(bumped, bumped))

    return _edit


FAKE_AIDL = r"""#!/bin/sh
# Minimal aidl lookalike: copies the source to <out>/<Name>.java and writes a depfile.
for arg in "$@"; do
  case "$arg" in
    -d*) dep="${arg#-d}" ;;
    -o*) out="${arg#-o}" ;;
    -I*) ;;
    *) src="$arg" ;;
  esac
done
if grep -q FAIL "$src"; then
  echo "$src: syntax error" >&2
  exit 3
fi
name=$(basename "$src" .aidl)
mkdir -p "$out"
cp "$src" "$out/$name.java"
printf '%s : \\\n  %s \\\n  %s\n' "$out/$name.java" "$src" "$src" > "$dep"
"""


@pytest.fixture
def fake_aidl(tmp_path: Path) -> list[str]:
    """Return a command line running a shell stand-in for aidl."""
    if shutil.which("sh") is None:
        pytest.skip("requires a POSIX shell")
    script = tmp_path / "fake-aidl.sh"
    script.write_text(FAKE_AIDL)
    return ["sh", str(script)]
