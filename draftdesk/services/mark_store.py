"""JSON persistence for AI edit marks and helpers to create them."""

from __future__ import annotations

import json
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from . import file_io


logger = logging.getLogger(__name__)

MARKS_DIR = ".draftdesk"
MARKS_FILE = "ai-marks.json"


class MarkStoreError(RuntimeError):
    """Raised when the marks file cannot be saved."""


@dataclass(slots=True)
class AIEditMark:
    id: str
    file_rel_path: str
    text: str
    model: str = ""
    inserted_at: str = ""
    reviewed: bool = False
    reviewed_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "file_rel_path": self.file_rel_path,
            "text": self.text,
            "model": self.model,
            "inserted_at": self.inserted_at,
            "reviewed": self.reviewed,
        }
        if self.reviewed_at:
            data["reviewed_at"] = self.reviewed_at
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "AIEditMark | None":
        if not isinstance(data, dict):
            return None
        mark_id = str(data.get("id") or "").strip()
        if not mark_id:
            return None
        reviewed_at = data.get("reviewed_at")
        return cls(
            id=mark_id,
            file_rel_path=str(data.get("file_rel_path") or ""),
            text=str(data.get("text") or ""),
            model=str(data.get("model") or ""),
            inserted_at=str(data.get("inserted_at") or ""),
            reviewed=bool(data.get("reviewed", False)),
            reviewed_at=str(reviewed_at) if reviewed_at else None,
        )


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_mark_id() -> str:
    return uuid.uuid4().hex[:8]


def marks_path_for_workspace(workspace_root: str) -> Path:
    return Path(workspace_root) / MARKS_DIR / MARKS_FILE


def split_written_text(written: str, *, min_chunk: int = 40, max_chunks: int = 12) -> list[str]:
    """Split AI-written text into paragraph chunks long enough to track reliably."""
    chunks = [part.strip() for part in re.split(r"\n{2,}", str(written or ""))]
    return [chunk for chunk in chunks if len(chunk) >= min_chunk][:max_chunks]


def make_text_marks(
    file_rel_path: str,
    written: str,
    model: str,
    *,
    min_chunk: int = 40,
    max_chunks: int = 12,
    now: str | None = None,
) -> list[AIEditMark]:
    inserted_at = now or utc_now_iso()
    return [
        AIEditMark(
            id=generate_mark_id(),
            file_rel_path=file_rel_path,
            text=chunk,
            model=model,
            inserted_at=inserted_at,
        )
        for chunk in split_written_text(written, min_chunk=min_chunk, max_chunks=max_chunks)
    ]


class MarkStore:
    """Read-modify-write access to a workspace's marks file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.last_error: str | None = None

    @classmethod
    def for_workspace(cls, workspace_root: str) -> "MarkStore":
        return cls(marks_path_for_workspace(workspace_root))

    def load(self) -> list[AIEditMark]:
        self.last_error = None
        if not self.path.exists():
            return []
        try:
            raw = json.loads(file_io.read_text(str(self.path)))
        except (file_io.ReadError, ValueError) as exc:
            self.last_error = str(exc)
            logger.warning("Ignoring unreadable marks file %s: %s", self.path, exc)
            return []
        if not isinstance(raw, list):
            self.last_error = (
                f"Marks root in '{self.path}' must be a JSON list, found {type(raw).__name__}."
            )
            logger.warning("%s", self.last_error)
            return []
        marks: list[AIEditMark] = []
        for item in raw:
            mark = AIEditMark.from_dict(item)
            if mark is not None:
                marks.append(mark)
        return marks

    def save(self, marks: Iterable[AIEditMark]) -> None:
        payload = [mark.to_dict() for mark in marks]
        try:
            file_io.atomic_write_text(str(self.path), json.dumps(payload, indent=2))
        except file_io.WriteError as exc:
            raise MarkStoreError(f"Could not write marks file '{self.path}': {exc}") from exc
        self.last_error = None

    def add(self, mark: AIEditMark) -> list[AIEditMark]:
        return self.add_bulk([mark])

    def add_bulk(self, new_marks: Iterable[AIEditMark]) -> list[AIEditMark]:
        additions = list(new_marks)
        marks = self.load()
        if not additions:
            return marks
        updated = marks + additions
        self.save(updated)
        return updated

    def mark_reviewed(self, mark_id: str, *, now: str | None = None) -> list[AIEditMark]:
        marks = self.load()
        stamp = now or utc_now_iso()
        changed = False
        for mark in marks:
            if mark.id == mark_id and not mark.reviewed:
                mark.reviewed = True
                mark.reviewed_at = stamp
                changed = True
        if changed:
            self.save(marks)
        return marks

    def review_all(self, *, file_rel_path: str | None = None, now: str | None = None) -> list[AIEditMark]:
        marks = self.load()
        stamp = now or utc_now_iso()
        changed = False
        for mark in marks:
            if mark.reviewed:
                continue
            if file_rel_path is not None and mark.file_rel_path != file_rel_path:
                continue
            mark.reviewed = True
            mark.reviewed_at = stamp
            changed = True
        if changed:
            self.save(marks)
        return marks

    def cleanup_for_content(self, file_rel_path: str, content: str, *, now: str | None = None) -> list[str]:
        """Auto-review unreviewed marks of a file whose text is gone; return their ids."""
        marks = self.load()
        stamp = now or utc_now_iso()
        removed: list[str] = []
        for mark in marks:
            if mark.reviewed or mark.file_rel_path != file_rel_path:
                continue
            if mark.text in content:
                continue
            mark.reviewed = True
            mark.reviewed_at = stamp
            removed.append(mark.id)
        if removed:
            self.save(marks)
        return removed

    def unreviewed_for_file(self, file_rel_path: str) -> list[AIEditMark]:
        return [
            mark
            for mark in self.load()
            if mark.file_rel_path == file_rel_path and not mark.reviewed
        ]
