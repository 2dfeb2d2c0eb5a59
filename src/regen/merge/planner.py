"""
Merge planning.

Turns the complete set of current inputs into the ordered, renamed and
filtered list the merger consumes:

1. Inputs scoped to the project come before all others (stable order).
2. For native libraries, directory inputs get a "lib/" prefix.
3. Every input is filtered by the content-type predicate and by the
   packaging options (excluded paths never reach the merge).
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from enum import StrEnum

from .inputs import FilterMergeInput, MergeInput, RenameMergeInput, Scope
from .policy import PackagingAction, PackagingOptions

DOT_CLASS = ".class"
DOT_NATIVE_LIBS = ".so"
FN_GDBSERVER = "gdbserver"
FN_GDB_SETUP = "gdb.setup"

NATIVE_LIBS_PREFIX = "lib/"

_JAR_ABI_PATTERN = re.compile(r"lib/([^/]+)/[^/]+")
_ABI_FILENAME_PATTERN = re.compile(r".*\.so")


class ContentType(StrEnum):
    """Kind of content a merge unit produces."""

    RESOURCES = "resources"
    NATIVE_LIBS = "native_libs"


def _accept_resource(path: str) -> bool:
    return not path.endswith(DOT_CLASS) and not path.endswith(DOT_NATIVE_LIBS)


def _accept_native_lib(path: str) -> bool:
    m = _JAR_ABI_PATTERN.fullmatch(path)
    if not m:
        return False
    # strip "lib/<abi>/"
    filename = path[len(NATIVE_LIBS_PREFIX) + len(m.group(1)) + 1 :]
    return (
        _ABI_FILENAME_PATTERN.fullmatch(filename) is not None
        or filename == FN_GDBSERVER
        or filename == FN_GDB_SETUP
    )


def accepted_paths_predicate(content_type: ContentType) -> Callable[[str], bool]:
    """Return the path acceptance predicate for a content type."""
    if content_type is ContentType.RESOURCES:
        return _accept_resource
    if content_type is ContentType.NATIVE_LIBS:
        return _accept_native_lib
    raise ValueError(f"Unsupported content type: {content_type}")


def _add_lib_prefix(path: str) -> str:
    return NATIVE_LIBS_PREFIX + path


def _strip_lib_prefix(path: str) -> str:
    return path[len(NATIVE_LIBS_PREFIX) :]


def plan_inputs(
    inputs: Sequence[MergeInput],
    content_type: ContentType,
    options: PackagingOptions,
) -> list[MergeInput]:
    """
    Order, rename and filter the inputs of one merge run.

    Args:
        inputs: All current inputs, in their natural order
        content_type: What the merge produces
        options: Packaging options of the run

    Returns:
        Planned inputs ready for the merger
    """
    accepted = accepted_paths_predicate(content_type)

    planned = sorted(inputs, key=lambda i: 0 if i.scope is Scope.PROJECT else 1)

    if content_type is ContentType.NATIVE_LIBS:
        planned = [
            RenameMergeInput(i, _add_lib_prefix, _strip_lib_prefix) if i.is_directory else i
            for i in planned
        ]

    def input_filter(path: str) -> bool:
        return accepted(path) and options.get_action(path) is not PackagingAction.EXCLUDE

    return [FilterMergeInput(i, input_filter) for i in planned]


__all__ = [
    "ContentType",
    "accepted_paths_predicate",
    "plan_inputs",
]
