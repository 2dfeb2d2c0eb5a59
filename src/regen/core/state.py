"""
Persisted state management for incremental runs.

One JSON state file per logical unit of work. Loading never raises: a missing
file and an unreadable file are reported as distinct outcomes so that the
caller can fall back to a full run. Saving is atomic with respect to crashes.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import StateError

logger = logging.getLogger(__name__)

STATE_SCHEMA_VERSION = 1

StateT = TypeVar("StateT", bound=BaseModel)


class StateLoadStatus(StrEnum):
    """Outcome of loading a state file."""

    LOADED = "loaded"
    NOT_FOUND = "not_found"
    CORRUPT = "corrupt"


@dataclass
class StateLoadResult(Generic[StateT]):
    """Result of ``StateStore.load``. ``state`` is set only when LOADED."""

    status: StateLoadStatus
    state: StateT | None = None
    reason: str | None = None

    @property
    def loaded(self) -> bool:
        return self.status is StateLoadStatus.LOADED

    @property
    def loaded_state(self) -> StateT:
        """The loaded state; raises ``StateError`` for any other outcome."""
        if self.state is None:
            raise StateError(f"State is not loaded ({self.status.value})")
        return self.state


class StateStore(Generic[StateT]):
    """Loads and saves one pydantic state model as a JSON file."""

    def __init__(
        self,
        path: Path,
        model: type[StateT],
        schema_version: int = STATE_SCHEMA_VERSION,
    ):
        """
        Initialize a state store.

        Args:
            path: Location of the state file
            model: Pydantic model the file deserializes into
            schema_version: Expected ``schema_version`` field of the model
        """
        self.path = path
        self.model = model
        self.schema_version = schema_version

    def load(self) -> StateLoadResult[StateT]:
        """
        Load the state file.

        Returns:
            LOADED with the state, NOT_FOUND if there is no file, or CORRUPT
            if the file cannot be read or does not validate.
        """
        if not self.path.is_file():
            return StateLoadResult(StateLoadStatus.NOT_FOUND)

        try:
            text = self.path.read_text(encoding="utf-8")
            state = self.model.model_validate_json(text)
        except (OSError, UnicodeDecodeError, ValidationError, ValueError) as e:
            logger.debug(f"State file {self.path} is unreadable: {e}")
            return StateLoadResult(StateLoadStatus.CORRUPT, reason=str(e))

        found = getattr(state, "schema_version", None)
        if found != self.schema_version:
            reason = f"schema version {found}, expected {self.schema_version}"
            return StateLoadResult(StateLoadStatus.CORRUPT, reason=reason)

        return StateLoadResult(StateLoadStatus.LOADED, state=state)

    def save(self, state: StateT) -> None:
        """
        Atomically write the state file.

        The data is written to a temporary sibling and moved into place, so a
        crash leaves either the previous file or no new content behind.

        Raises:
            StateError: If the state cannot be written
        """
        payload = state.model_dump_json(indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
        except OSError as e:
            raise StateError(f"Failed to save state to {self.path}: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StateError(f"Failed to save state to {self.path}: {e}") from e

    def clear(self) -> None:
        """Delete the state file (forces a full run next time)."""
        self.path.unlink(missing_ok=True)


def parameters_key(parameters: dict[str, Any]) -> str:
    """
    Compute a stable key for the parameters a state was produced with.

    A state whose key differs from the current one must not be reused.
    """
    raw = json.dumps(parameters, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


__all__ = [
    "STATE_SCHEMA_VERSION",
    "parameters_key",
    "StateLoadStatus",
    "StateLoadResult",
    "StateStore",
]
