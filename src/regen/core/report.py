"""Summary of one run of an incremental unit of work."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RunReport:
    """
    What a run did.

    Attributes:
        unit: Name of the unit of work
        full: True for a full run, False for an incremental one
        reason: Why a full run was chosen (None for incremental runs)
        processed: Files compiled or output paths written
        removed: Main files or output paths removed
    """

    unit: str
    full: bool
    reason: str | None = None
    processed: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    def summary(self) -> str:
        mode = f"full ({self.reason})" if self.full else "incremental"
        return (
            f"{self.unit}: {mode}, {len(self.processed)} processed, "
            f"{len(self.removed)} removed"
        )


__all__ = ["RunReport"]
