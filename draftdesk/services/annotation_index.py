"""Resolve annotated (machine-written) text spans into non-overlapping ranges."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from .match_finder import find_literal_occurrences


MIN_ANNOTATION_CHARS = 4


@dataclass(frozen=True, slots=True)
class Annotation:
    id: str
    text: str

    @classmethod
    def from_mapping(cls, data: Any) -> "Annotation":
        payload = data if isinstance(data, dict) else {}
        return cls(id=str(payload.get("id") or ""), text=str(payload.get("text") or ""))


@dataclass(frozen=True, slots=True)
class MarkRange:
    start: int
    end: int
    annotation_id: str


def is_trackable(text: str, min_chars: int = MIN_ANNOTATION_CHARS) -> bool:
    return bool(text) and len(text) >= max(1, int(min_chars))


def rebuild_mark_ranges(
    document_text: str,
    annotations: Iterable[Annotation],
    *,
    min_chars: int = MIN_ANNOTATION_CHARS,
) -> list[MarkRange]:
    """Return the sorted, pairwise non-overlapping ranges of every annotation.

    Candidates are collected per annotation in list order, then stable-sorted by
    start, so when two candidates collide the earlier-declared annotation (or the
    earlier occurrence) keeps the position.
    """
    candidates: list[MarkRange] = []
    for annotation in annotations:
        if not is_trackable(annotation.text, min_chars):
            continue
        for start, end in find_literal_occurrences(document_text, annotation.text):
            candidates.append(MarkRange(start=start, end=end, annotation_id=annotation.id))

    candidates.sort(key=lambda item: item.start)
    accepted: list[MarkRange] = []
    previous_end = -1
    for candidate in candidates:
        if candidate.start >= previous_end and candidate.start < candidate.end:
            accepted.append(candidate)
            previous_end = candidate.end
    return accepted


class AnnotationIndex:
    """Current annotation list plus the ranges resolved against the latest text."""

    def __init__(self, *, min_chars: int = MIN_ANNOTATION_CHARS) -> None:
        self._min_chars = max(1, int(min_chars))
        self._annotations: list[Annotation] = []
        self._ranges: list[MarkRange] = []

    @property
    def annotations(self) -> list[Annotation]:
        return list(self._annotations)

    @property
    def ranges(self) -> list[MarkRange]:
        return list(self._ranges)

    @property
    def min_chars(self) -> int:
        return self._min_chars

    def set_annotations(self, annotations: Iterable[Annotation], document_text: str) -> list[MarkRange]:
        self._annotations = list(annotations)
        return self.rebuild(document_text)

    def rebuild(self, document_text: str) -> list[MarkRange]:
        self._ranges = rebuild_mark_ranges(document_text, self._annotations, min_chars=self._min_chars)
        return self.ranges

    def clear(self) -> None:
        self._annotations = []
        self._ranges = []

    def ranges_for(self, annotation_id: str) -> list[MarkRange]:
        return [item for item in self._ranges if item.annotation_id == annotation_id]

    def visible_annotation_ids(self) -> list[str]:
        seen: dict[str, None] = {}
        for item in self._ranges:
            seen.setdefault(item.annotation_id, None)
        return list(seen)
