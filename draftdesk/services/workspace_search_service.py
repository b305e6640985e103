"""Storage-backed find/replace helpers used by workspace search."""

from __future__ import annotations

from dataclasses import dataclass, field

from .match_finder import CompiledQuery, iter_lines_with_offsets
from .workspace_files import WorkspaceStorage


@dataclass(frozen=True, slots=True)
class LineMatch:
    line_number: int
    line_text: str
    match_start: int
    match_end: int

    def to_dict(self) -> dict:
        return {
            "line_number": self.line_number,
            "line_text": self.line_text,
            "match_start": self.match_start,
            "match_end": self.match_end,
        }


@dataclass(slots=True)
class WorkspaceFileResult:
    path: str
    matches: list[LineMatch]
    collapsed: bool = False

    @property
    def match_count(self) -> int:
        return len(self.matches)


@dataclass(slots=True)
class WorkspaceReplaceSummary:
    files_changed: int = 0
    matches_replaced: int = 0
    changed_paths: list[str] = field(default_factory=list)
    failed_paths: list[str] = field(default_factory=list)

    def summary_text(self) -> str:
        matches = "match" if self.matches_replaced == 1 else "matches"
        files = "file" if self.files_changed == 1 else "files"
        text = f"Replaced {self.matches_replaced} {matches} in {self.files_changed} {files}"
        if self.failed_paths:
            text += f" ({len(self.failed_paths)} failed)"
        return text


def search_text(text: str, query: CompiledQuery, *, max_matches: int | None = None) -> list[LineMatch]:
    results: list[LineMatch] = []
    for line_number, _offset, line_text in iter_lines_with_offsets(text):
        for start, end in query.find_all(line_text):
            results.append(
                LineMatch(
                    line_number=line_number,
                    line_text=line_text,
                    match_start=start,
                    match_end=end,
                )
            )
            if max_matches is not None and len(results) >= max_matches:
                return results
    return results


def scan_file(
    storage: WorkspaceStorage,
    path: str,
    query: CompiledQuery,
    *,
    max_matches: int | None = None,
) -> WorkspaceFileResult | None:
    """Read one file and collect its matches; raises ``ReadError`` from the storage."""
    text = storage.read_text(path)
    matches = search_text(text, query, max_matches=max_matches)
    if not matches:
        return None
    return WorkspaceFileResult(path=path, matches=matches)


def replace_in_file(
    storage: WorkspaceStorage,
    path: str,
    query: CompiledQuery,
    replacement: str,
) -> int:
    """Substitute over the whole file and write it back only when it changed.

    Returns the number of replacements written (0 when the content is unchanged).
    """
    text = storage.read_text(path)
    new_text, replace_count = query.substitute(text, replacement)
    if replace_count <= 0 or new_text == text:
        return 0
    storage.write_text(path, new_text)
    return int(replace_count)


def preview_segments(
    line_text: str,
    match_start: int,
    match_end: int,
    *,
    max_chars: int = 120,
    context_chars: int = 40,
) -> tuple[str, str, str]:
    """Split a result line into ``(before, match, after)`` for display.

    Leading indentation is dropped; lines longer than ``max_chars`` are windowed
    around the match with ellipses marking the cut edges.
    """
    text = line_text.lstrip()
    trimmed = len(line_text) - len(text)
    start = max(0, match_start - trimmed)
    end = max(start, match_end - trimmed)

    if len(text) <= max_chars:
        return text[:start], text[start:end], text[end:]

    window_start = max(0, start - context_chars)
    window_end = min(len(text), end + context_chars)
    before = text[window_start:start]
    after = text[end:window_end]
    if window_start > 0:
        before = "…" + before
    if window_end < len(text):
        after = after + "…"
    return before, text[start:end], after
