"""
Stream merge algorithms.

The algorithm for a path is chosen once from its packaging action; the
contributors arrive already ordered by the planner.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..core.errors import ConflictError
from .inputs import MergeInput
from .policy import PackagingAction


def merge_contents(
    action: PackagingAction, path: str, contributors: Sequence[MergeInput]
) -> bytes:
    """
    Combine the contents of ``path`` from all contributors.

    Args:
        action: Packaging action resolved for ``path``
        path: Output path being produced
        contributors: Inputs providing ``path``, in input order

    Returns:
        Bytes to write at ``path``

    Raises:
        ConflictError: If the action is NONE and more than one input contributes
    """
    if not contributors:
        raise ValueError(f"No contributors for '{path}'")

    match action:
        case PackagingAction.EXCLUDE:
            raise AssertionError(f"Excluded path '{path}' reached the merge")
        case PackagingAction.PICK_FIRST:
            return contributors[0].read(path)
        case PackagingAction.MERGE:
            return b"".join(c.read(path) for c in contributors)
        case PackagingAction.NONE:
            if len(contributors) > 1:
                raise ConflictError(path, [c.name for c in contributors])
            return contributors[0].read(path)

    raise AssertionError(f"Unknown packaging action {action!r}")


__all__ = ["merge_contents"]
