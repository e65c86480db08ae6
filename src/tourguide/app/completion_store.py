"""Tour completion persistence.

Stores the single "user has finished or skipped the tour" flag across process
restarts. Read once when the controller starts, written once when the tour
terminates.

Design principles:
- Pure logic (no Qt import) so it can be unit-tested headless.
- Graceful fallback: a missing, corrupt or unreadable file reads as "not
  completed"; a failed write is logged and the session continues without
  persistence.
- Other keys in the state file are left untouched so several tours (or other
  small flags) can share one file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Protocol

__all__ = [
    "CompletionStore",
    "JsonCompletionStore",
    "MemoryCompletionStore",
    "DEFAULT_FILENAME",
]

DEFAULT_FILENAME = "tour_state.json"

_log = logging.getLogger(__name__)


class CompletionStore(Protocol):
    def load(self) -> bool: ...  # pragma: no cover - structural

    def save(self, completed: bool) -> None: ...  # pragma: no cover - structural


class MemoryCompletionStore:
    """In-process store used when storage is disabled and in tests."""

    def __init__(self, completed: bool = False) -> None:
        self.completed = completed
        self.save_count = 0

    def load(self) -> bool:
        return self.completed

    def save(self, completed: bool) -> None:
        self.completed = bool(completed)
        self.save_count += 1

    def clear(self) -> None:
        self.completed = False


def _resolve_path(base_dir: str | Path | None, filename: str) -> Path:
    base = Path(base_dir) if base_dir else Path.cwd()
    return base / filename


class JsonCompletionStore:
    """Completion flag kept in a small JSON document.

    Parameters
    ----------
    base_dir: Directory containing the state file (defaults to CWD).
    key: Name of the flag inside the document.
    filename: State file name.
    """

    def __init__(
        self,
        base_dir: str | Path | None = None,
        key: str = "tour_completed",
        *,
        filename: str = DEFAULT_FILENAME,
    ) -> None:
        self._path = _resolve_path(base_dir, filename)
        self._key = key

    @property
    def path(self) -> Path:
        return self._path

    @property
    def key(self) -> str:
        return self._key

    def _read_document(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        text = self._path.read_text(encoding="utf-8")
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("tour state document is not an object")
        return data

    def load(self) -> bool:
        try:
            data = self._read_document()
        except Exception as exc:  # noqa: BLE001
            _log.warning("Tour state unreadable at %s (%s); assuming not completed", self._path, exc)
            return False
        return data.get(self._key) is True

    def save(self, completed: bool) -> None:
        try:
            data = self._read_document()
        except Exception:  # noqa: BLE001 - corrupt document gets rewritten
            data = {}
        data[self._key] = bool(completed)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as exc:
            _log.warning("Tour state not persisted to %s: %s", self._path, exc)

    def clear(self) -> None:
        self.save(False)
