"""Find/replace state for the single open document."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from PySide6.QtCore import QObject, Signal

from draftdesk.editor_host import EditorHost
from draftdesk.services.edit_overlap import ChangedRange
from draftdesk.services.match_finder import (
    CompiledQuery,
    InvalidPatternError,
    SearchQuery,
    build_search_query,
    iter_lines_with_offsets,
)


# Highlight payload only; navigation, counts and replace see every match.
MAX_HIGHLIGHTED_MATCHES = 10000


@dataclass(frozen=True, slots=True)
class DocumentMatch:
    start: int
    end: int
    match: re.Match[str]

    @property
    def span(self) -> tuple[int, int]:
        return self.start, self.end


class DocumentSearchSession(QObject):
    matchesChanged = Signal(object)        # list[tuple[int, int]]
    matchCountChanged = Signal(int)
    activeMatchChanged = Signal(object)    # tuple[int, int] | None
    errorChanged = Signal(str)
    focusQueryRequested = Signal()
    openChanged = Signal(bool)

    def __init__(self, host: EditorHost, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._host = host
        self._open = False
        self._query = SearchQuery(pattern="")
        self._compiled: CompiledQuery | None = None
        self._error = ""
        self._matches: list[DocumentMatch] = []
        self._current_index = -1
        self._unsubscribe: Callable[[], None] | None = host.subscribe(self._on_document_changed)

    # ---------- State ----------

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def query(self) -> SearchQuery:
        return self._query

    @property
    def error(self) -> str:
        return self._error

    @property
    def matches(self) -> list[tuple[int, int]]:
        return [item.span for item in self._matches]

    @property
    def active_match(self) -> tuple[int, int] | None:
        if 0 <= self._current_index < len(self._matches):
            return self._matches[self._current_index].span
        return None

    @property
    def can_navigate(self) -> bool:
        return self._open and not self._error and bool(self._matches)

    def get_match_count(self) -> int:
        return len(self._matches)

    # ---------- Lifecycle ----------

    def open(self) -> None:
        if not self._open:
            self._open = True
            self.openChanged.emit(True)
        self.focusQueryRequested.emit()
        self._refresh_matches()

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        self._matches = []
        self._current_index = -1
        self._set_error("")
        self.matchesChanged.emit([])
        self.matchCountChanged.emit(0)
        self.activeMatchChanged.emit(None)
        self.openChanged.emit(False)

    def detach(self) -> None:
        self.close()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # ---------- Query ----------

    def set_query(
        self,
        pattern: str,
        *,
        case_sensitive: bool = False,
        whole_word: bool = False,
        use_regex: bool = False,
    ) -> int:
        self._query = SearchQuery(
            pattern=str(pattern or ""),
            case_sensitive=bool(case_sensitive),
            whole_word=bool(whole_word),
            use_regex=bool(use_regex),
            replacement=self._query.replacement,
        )
        self._refresh_matches()
        return len(self._matches)

    def set_replacement(self, replacement: str) -> None:
        self._query = SearchQuery(
            pattern=self._query.pattern,
            case_sensitive=self._query.case_sensitive,
            whole_word=self._query.whole_word,
            use_regex=self._query.use_regex,
            replacement=str(replacement or ""),
        )
        active = self.active_match
        self._refresh_matches(anchor=active[0] if active else None)

    # ---------- Navigation ----------

    def find_next(self) -> tuple[int, int] | None:
        if not self.can_navigate:
            return None
        if self._current_index >= 0:
            idx = (self._current_index + 1) % len(self._matches)
        else:
            idx = 0
        return self._goto_index(idx)

    def find_previous(self) -> tuple[int, int] | None:
        if not self.can_navigate:
            return None
        if self._current_index >= 0:
            idx = (self._current_index - 1) % len(self._matches)
        else:
            idx = len(self._matches) - 1
        return self._goto_index(idx)

    # ---------- Replace ----------

    def replace_one(self) -> bool:
        if not self.can_navigate or self._compiled is None:
            return False
        idx = self._current_index if self._current_index >= 0 else 0
        target = self._matches[idx]
        try:
            repl = self._compiled.expand(target.match, self._query.replacement)
        except InvalidPatternError as exc:
            self._set_error(str(exc))
            return False

        resume_at = target.start + len(repl)
        self._host.apply_edit(target.start, target.end, repl, (target.start, resume_at))
        self._refresh_matches(anchor=resume_at)
        if self._matches:
            self._goto_index(self._current_index if self._current_index >= 0 else 0)
        return True

    def replace_all(self) -> int:
        if not self.can_navigate or self._compiled is None:
            return 0
        source = self._host.get_text()
        first = self._matches[0].start
        last = self._matches[-1].end
        pieces: list[str] = []
        cursor = first
        try:
            for item in self._matches:
                pieces.append(source[cursor:item.start])
                pieces.append(self._compiled.expand(item.match, self._query.replacement))
                cursor = item.end
        except InvalidPatternError as exc:
            self._set_error(str(exc))
            return 0
        replaced = len(self._matches)
        new_span = "".join(pieces)
        self._host.apply_edit(first, last, new_span, (first + len(new_span), first + len(new_span)))
        self._current_index = -1
        self._refresh_matches()
        return replaced

    # ---------- Internals ----------

    def _on_document_changed(self, _old_text: str, _changed: list[ChangedRange]) -> None:
        if not self._open:
            return
        self._refresh_matches(anchor=self.active_match[0] if self.active_match else None)

    def _refresh_matches(self, *, anchor: int | None = None) -> None:
        if not self._open:
            return
        self._matches = []
        self._current_index = -1
        self._compiled = None
        try:
            self._compiled = build_search_query(self._query)
        except InvalidPatternError as exc:
            self._set_error(str(exc))
        else:
            self._set_error("")

        if self._compiled is not None:
            self._matches = self._collect_matches(self._compiled, self._host.get_text())
            if anchor is not None and self._matches:
                self._current_index = next(
                    (idx for idx, item in enumerate(self._matches) if item.start >= anchor),
                    0,
                )

        self.matchesChanged.emit(self.matches[:MAX_HIGHLIGHTED_MATCHES])
        self.matchCountChanged.emit(len(self._matches))
        self.activeMatchChanged.emit(self.active_match)

    def _collect_matches(self, compiled: CompiledQuery, source: str) -> list[DocumentMatch]:
        matches: list[DocumentMatch] = []
        for _line_number, offset, line_text in iter_lines_with_offsets(source):
            for match in compiled.iter_matches(line_text):
                start, end = match.span()
                if end <= start:
                    continue
                matches.append(DocumentMatch(start=offset + start, end=offset + end, match=match))
        return matches

    def _goto_index(self, idx: int) -> tuple[int, int] | None:
        if idx < 0 or idx >= len(self._matches):
            return None
        self._current_index = idx
        start, end = self._matches[idx].span
        self._host.set_selection(start, end)
        self.activeMatchChanged.emit((start, end))
        return start, end

    def _set_error(self, message: str) -> None:
        if message == self._error:
            return
        self._error = message
        self.errorChanged.emit(message)
