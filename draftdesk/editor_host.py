"""Contract between the editing core and the text-rendering component.

The core never touches a concrete widget: controllers receive an object that
satisfies :class:`EditorHost` and use only these calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from draftdesk.services.edit_overlap import ChangedRange


DocumentChangeListener = Callable[[str, list[ChangedRange]], None]


@dataclass(frozen=True, slots=True)
class ScreenRect:
    top: float
    left: float
    bottom: float
    right: float


class EditorHost(Protocol):
    def get_text(self) -> str:
        ...

    def coordinates_at(self, offset: int) -> ScreenRect | None:
        ...

    def viewport_origin(self) -> tuple[float, float]:
        ...

    def apply_edit(
        self,
        start: int,
        end: int,
        text: str,
        selection: tuple[int, int] | None = None,
    ) -> None:
        ...

    def set_selection(self, anchor: int, head: int) -> None:
        ...

    def subscribe(self, listener: DocumentChangeListener) -> Callable[[], None]:
        """Register ``listener(old_text, changed_ranges)``; returns an unsubscribe callable."""
        ...
