"""Controller for workspace-wide search and replace using pure search services."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from PySide6.QtCore import QObject, QTimer, Signal

from draftdesk.services.file_io import FileIOError
from draftdesk.services.match_finder import CompiledQuery, InvalidPatternError, SearchQuery, build_search_query
from draftdesk.services.workspace_files import WorkspaceStorage, is_binary_name
from draftdesk.services.workspace_search_service import (
    LineMatch,
    WorkspaceFileResult,
    WorkspaceReplaceSummary,
    preview_segments,
    replace_in_file,
    scan_file,
)
from draftdesk.settings_schema import NormalizedEditorConfig, default_editor_settings


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _ScanJob:
    token: int
    query: CompiledQuery
    paths: list[str]
    position: int = 0
    total_matches: int = 0
    results: list[WorkspaceFileResult] = field(default_factory=list)
    failed_reads: list[str] = field(default_factory=list)

    @property
    def done(self) -> bool:
        return self.position >= len(self.paths)


class WorkspaceSearchSession(QObject):
    resultsChanged = Signal(object)        # list[WorkspaceFileResult]
    searchStarted = Signal(str)            # pattern
    searchFinished = Signal(int, int)      # total matches, files with matches
    scanProgress = Signal(int, int)        # files scanned, files total
    errorChanged = Signal(str)
    replaceFinished = Signal(object)       # WorkspaceReplaceSummary
    statusMessage = Signal(str)

    def __init__(
        self,
        storage: WorkspaceStorage,
        root_path: str,
        *,
        config: Any = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._storage = storage
        self._root_path = str(root_path)
        self._cfg = NormalizedEditorConfig.from_mapping(config if config is not None else default_editor_settings())

        self._request = SearchQuery(pattern="")
        self._token_counter = 0
        self._latest_token = 0
        self._job: _ScanJob | None = None
        self._results: list[WorkspaceFileResult] = []
        self._results_query: CompiledQuery | None = None
        self._failed_reads: list[str] = []
        self._error = ""

        self._debounce_timer = QTimer(self)
        self._debounce_timer.setSingleShot(True)
        self._debounce_timer.timeout.connect(self._start_scan)

        self._scan_pump = QTimer(self)
        self._scan_pump.setInterval(0)
        self._scan_pump.timeout.connect(self._pump_scan)

    # ---------- Public API ----------

    @property
    def root_path(self) -> str:
        return self._root_path

    @property
    def debounce_timer(self) -> QTimer:
        return self._debounce_timer

    @property
    def scan_pump(self) -> QTimer:
        return self._scan_pump

    @property
    def is_searching(self) -> bool:
        return self._debounce_timer.isActive() or self._job is not None

    @property
    def error(self) -> str:
        return self._error

    @property
    def failed_reads(self) -> list[str]:
        return list(self._failed_reads)

    @property
    def total_matches(self) -> int:
        return sum(item.match_count for item in self._results)

    def get_results(self) -> list[WorkspaceFileResult]:
        return list(self._results)

    def update_settings(self, config: Any) -> None:
        self._cfg = NormalizedEditorConfig.from_mapping(config)

    def set_root_path(self, root_path: str) -> None:
        self._root_path = str(root_path)
        self._invalidate_scan()
        self._set_results([], None)

    def run_search(
        self,
        pattern: str,
        *,
        case_sensitive: bool = False,
        whole_word: bool = False,
        use_regex: bool = False,
    ) -> None:
        self._request = SearchQuery(
            pattern=str(pattern or ""),
            case_sensitive=bool(case_sensitive),
            whole_word=bool(whole_word),
            use_regex=bool(use_regex),
        )
        self._invalidate_scan()
        self._debounce_timer.start(self._cfg.search_debounce_ms)

    def flush_pending_search(self) -> bool:
        if not self._debounce_timer.isActive():
            return False
        self._debounce_timer.stop()
        self._start_scan()
        return True

    def advance_scan(self, max_files: int | None = None) -> bool:
        """Scan up to ``max_files`` more files of the current job; True while work remains."""
        job = self._job
        if job is None:
            return False
        budget = len(job.paths) if max_files is None else max(1, int(max_files))
        cap = self._cfg.search_max_results
        while budget > 0 and not job.done and job.total_matches < cap:
            self._scan_next_file(job)
            budget -= 1
        self.scanProgress.emit(job.position, len(job.paths))
        if job.done or job.total_matches >= cap:
            self._finish_scan(job)
            return False
        return True

    def complete_pending_scan(self) -> None:
        self.flush_pending_search()
        while self.advance_scan():
            pass

    def preview_for(self, match: LineMatch) -> tuple[str, str, str]:
        return preview_segments(
            match.line_text,
            match.match_start,
            match.match_end,
            max_chars=self._cfg.preview_max_chars,
            context_chars=self._cfg.preview_context_chars,
        )

    def toggle_collapsed(self, path: str) -> bool:
        for item in self._results:
            if item.path == path:
                item.collapsed = not item.collapsed
                self.resultsChanged.emit(self.get_results())
                return item.collapsed
        return False

    def replace_all_across_workspace(self, replacement: str) -> WorkspaceReplaceSummary:
        summary = WorkspaceReplaceSummary()
        query = self._results_query
        if query is None or not self._results or self._error:
            return summary

        for result in list(self._results):
            try:
                replaced = replace_in_file(self._storage, result.path, query, str(replacement or ""))
            except FileIOError as exc:
                logger.warning("Workspace replace skipped %s: %s", result.path, exc)
                summary.failed_paths.append(result.path)
                continue
            except InvalidPatternError as exc:
                # Every result file has a match, so a bad template fails before any write.
                self._set_error(str(exc))
                self.statusMessage.emit(str(exc))
                return summary
            if replaced <= 0:
                continue
            summary.files_changed += 1
            summary.matches_replaced += replaced
            summary.changed_paths.append(result.path)

        self.replaceFinished.emit(summary)
        self.statusMessage.emit(summary.summary_text())

        # Offsets are stale now; rescan right away.
        self._invalidate_scan()
        self._set_results([], None)
        self._debounce_timer.stop()
        self._start_scan()
        return summary

    def shutdown(self) -> None:
        self._debounce_timer.stop()
        self._scan_pump.stop()
        self._job = None

    # ---------- Internals ----------

    def _next_token(self) -> int:
        self._token_counter += 1
        return self._token_counter

    def _invalidate_scan(self) -> None:
        self._latest_token = self._next_token()
        if self._job is not None:
            logger.debug("Superseding workspace scan %s", self._job.token)
        self._job = None
        self._scan_pump.stop()

    def _start_scan(self) -> None:
        token = self._latest_token
        request = self._request
        if not request.pattern.strip():
            self._set_error("")
            self._set_results([], None)
            return
        try:
            query = build_search_query(request)
        except InvalidPatternError as exc:
            self._set_error(str(exc))
            self._set_results([], None)
            return
        self._set_error("")
        if query is None:
            self._set_results([], None)
            return

        try:
            listed = self._storage.list_text_files(self._root_path)
        except FileIOError as exc:
            logger.warning("Could not list workspace files under %s: %s", self._root_path, exc)
            listed = []
        paths = [path for path in listed if not is_binary_name(path, self._cfg.binary_extensions)]

        self._job = _ScanJob(token=token, query=query, paths=paths)
        logger.debug("Workspace scan %s started over %d file(s)", token, len(paths))
        self.searchStarted.emit(request.pattern)
        self._scan_pump.start()

    def _pump_scan(self) -> None:
        if not self.advance_scan(self._cfg.search_files_per_tick):
            self._scan_pump.stop()

    def _scan_next_file(self, job: _ScanJob) -> None:
        path = job.paths[job.position]
        job.position += 1
        remaining = self._cfg.search_max_results - job.total_matches
        try:
            result = scan_file(self._storage, path, job.query, max_matches=remaining)
        except FileIOError as exc:
            logger.warning("Workspace search skipped unreadable file %s: %s", path, exc)
            job.failed_reads.append(path)
            return
        if result is None:
            return
        result.matches = [item for item in result.matches if item.match_end > item.match_start]
        if not result.matches:
            return
        job.results.append(result)
        job.total_matches += result.match_count

    def _finish_scan(self, job: _ScanJob) -> None:
        if self._job is job:
            self._job = None
            self._scan_pump.stop()
        if job.token != self._latest_token:
            logger.debug("Discarding stale workspace scan %s", job.token)
            return
        self._failed_reads = list(job.failed_reads)
        self._set_results(job.results, job.query)
        self.searchFinished.emit(job.total_matches, len(job.results))

    def _set_results(self, results: list[WorkspaceFileResult], query: CompiledQuery | None) -> None:
        self._results = list(results)
        self._results_query = query
        self.resultsChanged.emit(self.get_results())

    def _set_error(self, message: str) -> None:
        if message == self._error:
            return
        self._error = message
        self.errorChanged.emit(message)
