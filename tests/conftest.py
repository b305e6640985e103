import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtWidgets import QApplication

from draftdesk.editor_host import ScreenRect
from draftdesk.services.edit_overlap import ChangedRange
from draftdesk.services.file_io import ReadError, WriteError
from draftdesk.services.workspace_files import is_binary_name


LINE_HEIGHT = 20
CHAR_WIDTH = 8


class FakeEditorHost:
    """In-memory editor host with a fixed-width character grid."""

    def __init__(self, text: str = "", origin: tuple[float, float] = (100.0, 50.0)) -> None:
        self.text = text
        self.origin = origin
        self.selection: tuple[int, int] | None = None
        self.hidden_offsets: set[int] = set()
        self.edits: list[tuple[int, int, str]] = []
        self._listeners = []

    def get_text(self) -> str:
        return self.text

    def coordinates_at(self, offset: int):
        if offset in self.hidden_offsets or offset < 0 or offset > len(self.text):
            return None
        line = self.text.count("\n", 0, offset)
        line_start = self.text.rfind("\n", 0, offset) + 1
        column = offset - line_start
        top = self.origin[1] + line * LINE_HEIGHT
        left = self.origin[0] + column * CHAR_WIDTH
        return ScreenRect(top=top, left=left, bottom=top + LINE_HEIGHT - 2, right=left + CHAR_WIDTH)

    def viewport_origin(self):
        return self.origin

    def apply_edit(self, start, end, text, selection=None):
        old_text = self.text
        self.text = old_text[:start] + text + old_text[end:]
        self.edits.append((start, end, text))
        if selection is not None:
            self.selection = tuple(selection)
        for listener in list(self._listeners):
            listener(old_text, [ChangedRange(start_old=start, end_old=end)])

    def set_selection(self, anchor, head):
        self.selection = (anchor, head)

    def subscribe(self, listener):
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


class MemoryStorage:
    """Dictionary-backed workspace storage that records every write."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files = dict(files or {})
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()
        self.writes: list[str] = []
        self.reads: list[str] = []

    def list_text_files(self, root_path: str) -> list[str]:
        return [path for path in sorted(self.files) if not is_binary_name(path)]

    def read_text(self, path: str) -> str:
        self.reads.append(path)
        if path in self.fail_reads or path not in self.files:
            raise ReadError(path, f"Could not read '{path}'")
        return self.files[path]

    def write_text(self, path: str, content: str) -> None:
        if path in self.fail_writes:
            raise WriteError(path, f"Could not write '{path}'")
        self.writes.append(path)
        self.files[path] = content


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def host():
    return FakeEditorHost()


@pytest.fixture
def storage():
    return MemoryStorage()
