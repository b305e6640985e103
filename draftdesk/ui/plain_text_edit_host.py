"""EditorHost adapter over a Qt ``QPlainTextEdit``."""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QObject, QPoint
from PySide6.QtGui import QTextCursor
from PySide6.QtWidgets import QPlainTextEdit

from draftdesk.editor_host import DocumentChangeListener, ScreenRect
from draftdesk.services.edit_overlap import ChangedRange


class PlainTextEditHost(QObject):
    def __init__(self, editor: QPlainTextEdit, parent: QObject | None = None) -> None:
        super().__init__(parent or editor)
        self._editor = editor
        self._listeners: list[DocumentChangeListener] = []
        self._last_text = editor.toPlainText()
        editor.document().contentsChange.connect(self._on_contents_change)

    @property
    def editor(self) -> QPlainTextEdit:
        return self._editor

    def get_text(self) -> str:
        return self._editor.toPlainText()

    def coordinates_at(self, offset: int) -> ScreenRect | None:
        text_length = len(self._editor.toPlainText())
        if offset < 0 or offset > text_length:
            return None
        cursor = QTextCursor(self._editor.document())
        cursor.setPosition(int(offset))
        rect = self._editor.cursorRect(cursor)
        if not rect.isValid():
            return None
        viewport = self._editor.viewport()
        top_left = viewport.mapToGlobal(rect.topLeft())
        bottom_right = viewport.mapToGlobal(rect.bottomRight())
        return ScreenRect(
            top=float(top_left.y()),
            left=float(top_left.x()),
            bottom=float(bottom_right.y()),
            right=float(bottom_right.x()),
        )

    def viewport_origin(self) -> tuple[float, float]:
        origin = self._editor.viewport().mapToGlobal(QPoint(0, 0))
        return float(origin.x()), float(origin.y())

    def apply_edit(
        self,
        start: int,
        end: int,
        text: str,
        selection: tuple[int, int] | None = None,
    ) -> None:
        cursor = QTextCursor(self._editor.document())
        cursor.beginEditBlock()
        cursor.setPosition(int(start))
        cursor.setPosition(int(end), QTextCursor.MoveMode.KeepAnchor)
        cursor.insertText(str(text))
        cursor.endEditBlock()
        if selection is not None:
            self.set_selection(*selection)

    def set_selection(self, anchor: int, head: int) -> None:
        cursor = self._editor.textCursor()
        cursor.setPosition(int(anchor))
        cursor.setPosition(int(head), QTextCursor.MoveMode.KeepAnchor)
        self._editor.setTextCursor(cursor)
        self._editor.ensureCursorVisible()

    def subscribe(self, listener: DocumentChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _on_contents_change(self, position: int, chars_removed: int, chars_added: int) -> None:
        old_text = self._last_text
        new_text = self._editor.toPlainText()
        if new_text == old_text:
            return
        self._last_text = new_text
        # Qt counts the implicit trailing block separator, so clamp to the old text.
        start_old = max(0, min(int(position), len(old_text)))
        end_old = max(start_old, min(int(position) + int(chars_removed), len(old_text)))
        changed = [ChangedRange(start_old=start_old, end_old=end_old)]
        for listener in list(self._listeners):
            listener(old_text, changed)
