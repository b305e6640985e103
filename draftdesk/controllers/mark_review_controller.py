"""Review lifecycle of persisted AI edit marks for the active document."""

from __future__ import annotations

from typing import Any

from PySide6.QtCore import QObject, Signal

from draftdesk.controllers.annotation_controller import AnnotationController
from draftdesk.services.annotation_index import Annotation
from draftdesk.services.mark_store import AIEditMark, MarkStore, MarkStoreError, make_text_marks
from draftdesk.settings_schema import NormalizedEditorConfig, default_editor_settings


class MarkReviewController(QObject):
    marksChanged = Signal(object)   # list[AIEditMark] for the active file
    statusMessage = Signal(str)

    def __init__(
        self,
        store: MarkStore,
        annotations: AnnotationController,
        *,
        config: Any = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._annotations = annotations
        self._cfg = NormalizedEditorConfig.from_mapping(config if config is not None else default_editor_settings())
        self._active_file: str | None = None
        self._active_marks: list[AIEditMark] = []

        annotations.annotationEdited.connect(self.mark_reviewed)
        annotations.positioner.acceptRequested.connect(self.mark_reviewed)
        annotations.rangesChanged.connect(self._on_ranges_changed)

    @property
    def active_file(self) -> str | None:
        return self._active_file

    @property
    def active_marks(self) -> list[AIEditMark]:
        return list(self._active_marks)

    def set_active_file(self, file_rel_path: str | None) -> None:
        self._active_file = file_rel_path or None
        self.refresh()

    def refresh(self) -> None:
        if self._active_file is None:
            self._active_marks = []
        else:
            self._active_marks = self._store.unreviewed_for_file(self._active_file)
        self._annotations.set_annotations(
            Annotation(id=mark.id, text=mark.text) for mark in self._active_marks
        )
        self.marksChanged.emit(self.active_marks)

    def record_written_text(self, file_rel_path: str, written: str, model: str) -> list[AIEditMark]:
        marks = make_text_marks(
            file_rel_path,
            written,
            model,
            min_chunk=self._cfg.mark_min_chunk_chars,
            max_chunks=self._cfg.mark_max_chunks,
        )
        if not marks:
            return []
        if not self._save(lambda: self._store.add_bulk(marks)):
            return []
        if file_rel_path == self._active_file:
            self.refresh()
        return marks

    def mark_reviewed(self, mark_id: str) -> None:
        if self._save(lambda: self._store.mark_reviewed(mark_id)):
            self.refresh()

    def review_all(self) -> None:
        if self._active_file is None:
            return
        active = self._active_file
        if self._save(lambda: self._store.review_all(file_rel_path=active)):
            self.refresh()

    def _on_ranges_changed(self, _ranges: object) -> None:
        if self._active_file is None or not self._active_marks:
            return
        content = self._annotations.host_text()
        gone = [mark.id for mark in self._active_marks if mark.text not in content]
        if not gone:
            return
        active = self._active_file
        if self._save(lambda: self._store.cleanup_for_content(active, content)):
            self.refresh()

    def _save(self, action) -> bool:
        try:
            action()
        except MarkStoreError as exc:
            self.statusMessage.emit(str(exc))
            return False
        return True
