"""
Packaging options: the per-path conflict policy of a merge.

Each path gets exactly one action. Patterns are globs over "/" separated
relative paths: ``*`` and ``?`` stay within one segment, ``**`` spans
segments. A leading "/" on a pattern is ignored.
"""

from __future__ import annotations

import re
from enum import StrEnum
from functools import lru_cache

from pydantic import BaseModel, ConfigDict

# Matches the excludes applied to packaged resources by default.
DEFAULT_EXCLUDES: tuple[str, ...] = (
    "META-INF/LICENSE",
    "META-INF/LICENSE.txt",
    "META-INF/MANIFEST.MF",
    "META-INF/NOTICE",
    "META-INF/NOTICE.txt",
    "META-INF/*.DSA",
    "META-INF/*.EC",
    "META-INF/*.SF",
    "META-INF/*.RSA",
    "META-INF/maven/**",
    "LICENSE",
    "LICENSE.txt",
    "NOTICE",
    "NOTICE.txt",
    "**/.svn/**",
    "**/CVS/**",
    "**/SCCS/**",
)


class PackagingAction(StrEnum):
    """What to do with a path seen in one or more inputs."""

    EXCLUDE = "exclude"
    PICK_FIRST = "pick_first"
    MERGE = "merge"
    NONE = "none"  # exactly one input may provide the path


@lru_cache(maxsize=1024)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a path glob into a compiled regular expression."""
    pattern = pattern.lstrip("/")
    out: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out))


class PackagingOptions(BaseModel):
    """
    Immutable path-pattern policy for one merge run.

    Attributes:
        exclude: Paths dropped from every input
        pick_first: Paths where the first input in order wins
        merge: Paths whose contents are concatenated in input order

    A path matched by several lists resolves in that order; a path matched by
    none gets ``PackagingAction.NONE``.
    """

    exclude: tuple[str, ...] = ()
    pick_first: tuple[str, ...] = ()
    merge: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    def get_action(self, path: str) -> PackagingAction:
        path = path.lstrip("/")
        for action, patterns in (
            (PackagingAction.EXCLUDE, self.exclude),
            (PackagingAction.PICK_FIRST, self.pick_first),
            (PackagingAction.MERGE, self.merge),
        ):
            if any(glob_to_regex(p).fullmatch(path) for p in patterns):
                return action
        return PackagingAction.NONE

    def parameters(self) -> dict[str, list[str]]:
        """Inputs that must invalidate a previous merge when they change."""
        return {
            "exclude": list(self.exclude),
            "pick_first": list(self.pick_first),
            "merge": list(self.merge),
        }


__all__ = [
    "DEFAULT_EXCLUDES",
    "PackagingAction",
    "PackagingOptions",
    "glob_to_regex",
]
