"""Frame-synced screen anchors and hover hit-testing for annotated spans."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from PySide6.QtCore import QObject, QTimer, Signal

from draftdesk.editor_host import EditorHost
from draftdesk.services.annotation_index import Annotation, is_trackable
from draftdesk.settings_schema import NormalizedEditorConfig, default_editor_settings


@dataclass(frozen=True, slots=True)
class OverlayAnchor:
    annotation_id: str
    top: float
    left: float
    bottom: float
    right: float

    @property
    def button_position(self) -> tuple[float, float]:
        return self.top, self.right

    def hover_contains(self, x: float, y: float, *, epsilon: float, margin: float, width: float) -> bool:
        hover_left = self.left - margin
        return (
            hover_left <= x <= hover_left + width
            and self.top - epsilon <= y <= self.bottom + epsilon
        )


class OverlayPositioner(QObject):
    anchorsChanged = Signal(object)            # list[OverlayAnchor]
    activeAnnotationChanged = Signal(object)   # str | None
    acceptRequested = Signal(str)
    activeStateChanged = Signal(bool)

    def __init__(self, host: EditorHost, *, config: Any = None, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._host = host
        self._cfg = NormalizedEditorConfig.from_mapping(config if config is not None else default_editor_settings())
        self._visible = False
        self._annotations: list[Annotation] = []
        self._anchors: list[OverlayAnchor] = []
        self._active_annotation_id: str | None = None

        self._frame_timer = QTimer(self)
        self._frame_timer.setInterval(self._cfg.overlay_frame_interval_ms)
        self._frame_timer.timeout.connect(self.tick)

    @property
    def frame_timer(self) -> QTimer:
        return self._frame_timer

    @property
    def is_active(self) -> bool:
        return self._visible and bool(self._annotations)

    @property
    def anchors(self) -> list[OverlayAnchor]:
        return list(self._anchors)

    @property
    def active_annotation_id(self) -> str | None:
        return self._active_annotation_id

    def update_settings(self, config: Any) -> None:
        self._cfg = NormalizedEditorConfig.from_mapping(config)
        self._frame_timer.setInterval(self._cfg.overlay_frame_interval_ms)

    def set_visible(self, visible: bool) -> None:
        self._visible = bool(visible)
        self._sync_loop()

    def set_annotations(self, annotations: Sequence[Annotation]) -> None:
        self._annotations = [
            item for item in annotations if is_trackable(item.text, self._cfg.min_annotation_chars)
        ]
        self._sync_loop()

    def tick(self) -> None:
        if not self.is_active:
            return
        text = self._host.get_text()
        origin_x, origin_y = self._host.viewport_origin()

        next_anchors: list[OverlayAnchor] = []
        for annotation in self._annotations:
            offset = text.find(annotation.text)
            if offset < 0:
                continue
            rect = self._host.coordinates_at(offset)
            if rect is None:
                continue
            next_anchors.append(
                OverlayAnchor(
                    annotation_id=annotation.id,
                    top=rect.top - origin_y,
                    left=rect.left - origin_x,
                    bottom=rect.bottom - origin_y,
                    right=rect.right - origin_x,
                )
            )
        self._set_anchors(next_anchors)

    def hit_test(self, x: float, y: float) -> str | None:
        for anchor in self._anchors:
            if anchor.hover_contains(
                x,
                y,
                epsilon=self._cfg.overlay_hover_epsilon_px,
                margin=self._cfg.overlay_hover_margin_px,
                width=self._cfg.overlay_hover_width_px,
            ):
                return anchor.annotation_id
        return None

    def handle_pointer_move(self, x: float, y: float) -> str | None:
        if not self.is_active:
            self._set_active_annotation(None)
            return None
        self._set_active_annotation(self.hit_test(x, y))
        return self._active_annotation_id

    def handle_pointer_leave(self) -> None:
        self._set_active_annotation(None)

    def accept_active(self) -> bool:
        if self._active_annotation_id is None:
            return False
        self.request_accept(self._active_annotation_id)
        return True

    def request_accept(self, annotation_id: str) -> None:
        key = str(annotation_id or "").strip()
        if not key:
            return
        self.acceptRequested.emit(key)

    def _sync_loop(self) -> None:
        if self.is_active:
            if not self._frame_timer.isActive():
                self._frame_timer.start()
                self.activeStateChanged.emit(True)
            self.tick()
            return
        if self._frame_timer.isActive():
            self._frame_timer.stop()
            self.activeStateChanged.emit(False)
        self._set_anchors([])
        self._set_active_annotation(None)

    def _set_anchors(self, anchors: list[OverlayAnchor]) -> None:
        if anchors == self._anchors:
            return
        self._anchors = anchors
        if self._active_annotation_id is not None and all(
            anchor.annotation_id != self._active_annotation_id for anchor in anchors
        ):
            self._set_active_annotation(None)
        self.anchorsChanged.emit(list(anchors))

    def _set_active_annotation(self, annotation_id: str | None) -> None:
        if annotation_id == self._active_annotation_id:
            return
        self._active_annotation_id = annotation_id
        self.activeAnnotationChanged.emit(annotation_id)
