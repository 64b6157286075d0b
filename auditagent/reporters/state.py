"""Incremental JSON checkpointing of the analysis state."""

import json
import os
import tempfile
from pathlib import Path

from auditagent.core.errors import OutputError
from auditagent.core.models import AnalysisState


class StateWriter:
    """
    Rewrites the whole state document on every call.

    The document is written to a temporary file next to the target and
    moved over it, so readers never observe a half-written file.
    """

    def __init__(self, path):
        self.path = Path(path)
        self.writes = 0

    def write(self, state: AnalysisState) -> None:
        write_text_atomic(self.path, json.dumps(state.to_dict(), indent=2) + "\n")
        self.writes += 1


def load_state(path) -> AnalysisState:
    with open(path, "r", encoding="utf-8") as f:
        return AnalysisState.from_dict(json.load(f))


def write_text_atomic(path: Path, content: str) -> None:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as e:
        raise OutputError(f"Failed to write {path}: {e}") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, path)
    except OSError as e:
        _discard(tmp)
        raise OutputError(f"Failed to write {path}: {e}") from e
    except BaseException:
        _discard(tmp)
        raise


def _discard(tmp: str):
    if os.path.exists(tmp):
        os.unlink(tmp)
