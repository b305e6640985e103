"""Correlate raw edit ranges with the annotations they touched."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from .annotation_index import MIN_ANNOTATION_CHARS, Annotation, is_trackable
from .match_finder import find_literal_occurrences


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChangedRange:
    """Replaced span ``[start_old, end_old)`` of the text before an edit."""

    start_old: int
    end_old: int


def spans_overlap(occ_start: int, occ_end: int, changed: ChangedRange) -> bool:
    # Half-open on both sides: touching an edge is not an overlap.
    return occ_start < changed.end_old and occ_end > changed.start_old


def touched_annotation_ids(
    old_text: str,
    changed_ranges: Iterable[ChangedRange],
    annotations: Sequence[Annotation],
    *,
    min_chars: int = MIN_ANNOTATION_CHARS,
) -> list[str]:
    """Return each annotation id whose text overlapped an edit, once, in detection order."""
    touched: dict[str, None] = {}
    for changed in changed_ranges:
        for annotation in annotations:
            if annotation.id in touched or not is_trackable(annotation.text, min_chars):
                continue
            for occ_start, occ_end in find_literal_occurrences(old_text, annotation.text):
                if occ_start >= changed.end_old:
                    break
                if spans_overlap(occ_start, occ_end, changed):
                    touched[annotation.id] = None
                    break
    return list(touched)


class EditOverlapTracker:
    """Stateless per-edit overlap check with failure-isolated delivery."""

    def __init__(self, *, min_chars: int = MIN_ANNOTATION_CHARS) -> None:
        self._min_chars = max(1, int(min_chars))

    def on_edit(
        self,
        old_text: str,
        changed_ranges: Iterable[ChangedRange],
        annotations: Sequence[Annotation],
    ) -> list[str]:
        return touched_annotation_ids(old_text, changed_ranges, annotations, min_chars=self._min_chars)

    def notify(self, annotation_ids: Iterable[str], callbacks: Iterable[Callable[[str], None]]) -> None:
        listeners = list(callbacks)
        for annotation_id in annotation_ids:
            for callback in listeners:
                try:
                    callback(annotation_id)
                except Exception:
                    logger.exception("Annotation edit callback failed for %s", annotation_id)
