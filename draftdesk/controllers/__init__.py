"""Qt-aware controllers built on the pure services."""

from .annotation_controller import AnnotationController
from .document_search import DocumentSearchSession
from .mark_review_controller import MarkReviewController
from .overlay_positioner import OverlayAnchor, OverlayPositioner
from .workspace_search import WorkspaceSearchSession

__all__ = [
    "AnnotationController",
    "DocumentSearchSession",
    "MarkReviewController",
    "OverlayAnchor",
    "OverlayPositioner",
    "WorkspaceSearchSession",
]
