"""
Local persistence for per-assessment notes.

Notes live in a small JSON key-value file. The ``assessmentNotes`` key holds
a serialized array of ``{assessmentId, notes}``; it is read once at startup
and rewritten wholesale after every edit. Notes are independent of the
server, so deleting an assessment leaves its note behind unless ``prune`` is
called.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from ..domain.models import AssessmentNote
from ..infrastructure.exceptions import NotesStorageError
from ..infrastructure.logging import get_logger

logger = get_logger(__name__)

STORAGE_KEY = "assessmentNotes"


class NotesStore:
    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._notes: list[AssessmentNote] = []

    def _read_storage(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            storage = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as e:
            raise NotesStorageError(f"Cannot read {self.path}: {e}", path=str(self.path)) from e
        if not isinstance(storage, dict):
            raise NotesStorageError(f"{self.path} is not a key-value object", path=str(self.path))
        return storage

    def _write(self) -> None:
        storage = self._read_storage()
        storage[STORAGE_KEY] = json.dumps([note.to_storage() for note in self._notes])
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(storage, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise NotesStorageError(f"Cannot write {self.path}: {e}", path=str(self.path)) from e

    def load(self) -> list[AssessmentNote]:
        """Read every saved note; a missing file or key means no notes."""
        raw = self._read_storage().get(STORAGE_KEY)
        if not raw:
            self._notes = []
            return []
        try:
            entries = json.loads(raw) if isinstance(raw, str) else raw
            self._notes = [AssessmentNote.from_storage(entry) for entry in entries]
        except (TypeError, ValueError, KeyError) as e:
            raise NotesStorageError(
                f"Corrupt {STORAGE_KEY} entry in {self.path}: {e}", path=str(self.path)
            ) from e
        logger.info(f"Loaded {len(self._notes)} notes from {self.path}")
        return list(self._notes)

    def all(self) -> list[AssessmentNote]:
        return list(self._notes)

    def get(self, assessment_id: int) -> str:
        for note in self._notes:
            if note.assessment_id == assessment_id:
                return note.notes
        return ""

    def set(self, assessment_id: int, text: str) -> None:
        """Replace (or add) the note for ``assessment_id`` and rewrite the file."""
        for note in self._notes:
            if note.assessment_id == assessment_id:
                note.notes = text
                break
        else:
            self._notes.append(AssessmentNote(assessment_id=assessment_id, notes=text))
        self._write()

    def prune(self, active_ids: Iterable[int]) -> int:
        """Drop notes whose assessment is not in ``active_ids``; returns the count removed."""
        keep = set(active_ids)
        remaining = [note for note in self._notes if note.assessment_id in keep]
        removed = len(self._notes) - len(remaining)
        if removed:
            self._notes = remaining
            self._write()
            logger.info(f"Pruned {removed} orphaned notes")
        return removed
