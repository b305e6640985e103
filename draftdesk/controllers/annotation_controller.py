"""Keeps annotation highlights, edit notifications and overlay anchors in sync with a host."""

from __future__ import annotations

from typing import Any, Callable, Iterable

from PySide6.QtCore import QObject, Signal

from draftdesk.controllers.overlay_positioner import OverlayAnchor, OverlayPositioner
from draftdesk.editor_host import EditorHost
from draftdesk.services.annotation_index import Annotation, AnnotationIndex, MarkRange
from draftdesk.services.edit_overlap import ChangedRange, EditOverlapTracker
from draftdesk.settings_schema import NormalizedEditorConfig, default_editor_settings


class AnnotationController(QObject):
    annotationEdited = Signal(str)
    rangesChanged = Signal(object)        # list[MarkRange]
    annotationsChanged = Signal(object)   # list[Annotation]

    def __init__(self, host: EditorHost, *, config: Any = None, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._host = host
        raw_cfg = config if config is not None else default_editor_settings()
        self._cfg = NormalizedEditorConfig.from_mapping(raw_cfg)
        self._index = AnnotationIndex(min_chars=self._cfg.min_annotation_chars)
        self._tracker = EditOverlapTracker(min_chars=self._cfg.min_annotation_chars)
        self._edit_callbacks: list[Callable[[str], None]] = []
        self._nav_index = -1

        self.positioner = OverlayPositioner(host, config=raw_cfg, parent=self)
        self._unsubscribe: Callable[[], None] | None = host.subscribe(self._on_document_changed)

    @property
    def annotations(self) -> list[Annotation]:
        return self._index.annotations

    @property
    def ranges(self) -> list[MarkRange]:
        return self._index.ranges

    def set_annotations(self, annotations: Iterable[Annotation]) -> list[MarkRange]:
        items = list(annotations)
        ranges = self._index.set_annotations(items, self._host.get_text())
        self._nav_index = -1
        self.positioner.set_annotations(items)
        self.annotationsChanged.emit(list(items))
        self.rangesChanged.emit(ranges)
        return ranges

    def on_annotation_edited(self, callback: Callable[[str], None]) -> Callable[[], None]:
        self._edit_callbacks.append(callback)

        def _remove() -> None:
            if callback in self._edit_callbacks:
                self._edit_callbacks.remove(callback)

        return _remove

    def host_text(self) -> str:
        return self._host.get_text()

    def get_overlay_anchors(self) -> list[OverlayAnchor]:
        return self.positioner.anchors

    def set_overlay_visible(self, visible: bool) -> None:
        self.positioner.set_visible(visible)

    def navigate_next(self) -> str | None:
        return self._navigate(1)

    def navigate_previous(self) -> str | None:
        return self._navigate(-1)

    def detach(self) -> None:
        self.positioner.set_visible(False)
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _navigate(self, step: int) -> str | None:
        visible_ids = set(self._index.visible_annotation_ids())
        candidates = [item for item in self._index.annotations if item.id in visible_ids]
        if not candidates:
            return None
        if self._nav_index < 0:
            idx = 0 if step > 0 else len(candidates) - 1
        else:
            idx = (self._nav_index + step) % len(candidates)
        self._nav_index = idx
        target = candidates[idx]
        first = self._index.ranges_for(target.id)[0]
        self._host.set_selection(first.start, first.end)
        return target.id

    def _on_document_changed(self, old_text: str, changed_ranges: list[ChangedRange]) -> None:
        annotations = self._index.annotations
        touched = self._tracker.on_edit(old_text, changed_ranges, annotations) if annotations else []
        ranges = self._index.rebuild(self._host.get_text())
        self.rangesChanged.emit(ranges)
        if not touched:
            return
        self._tracker.notify(touched, [*self._edit_callbacks, self.annotationEdited.emit])
