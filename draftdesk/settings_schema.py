from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


DEFAULT_BINARY_EXTENSIONS = (
    "png", "jpg", "jpeg", "gif", "webp", "svg", "avif", "bmp", "ico", "tiff", "tif",
    "pdf", "mp4", "webm", "mov", "mkv", "avi", "m4v", "ogv",
    "zip", "tar", "gz", "wasm", "exe", "dmg", "pkg",
    "tldr",
)
DEFAULT_SKIP_DIR_NAMES = ("node_modules", ".git", "target", ".draftdesk")


class EditorSettings(TypedDict, total=False):
    min_annotation_chars: int
    overlay_frame_interval_ms: int
    overlay_hover_epsilon_px: int
    overlay_hover_margin_px: int
    overlay_hover_width_px: int
    search_debounce_ms: int
    search_files_per_tick: int
    search_max_results: int
    preview_max_chars: int
    preview_context_chars: int
    mark_min_chunk_chars: int
    mark_max_chunks: int
    binary_extensions: list[str]
    skip_dir_names: list[str]
    max_walk_depth: int


def default_editor_settings() -> EditorSettings:
    return {
        "min_annotation_chars": 4,
        "overlay_frame_interval_ms": 16,
        "overlay_hover_epsilon_px": 3,
        "overlay_hover_margin_px": 6,
        "overlay_hover_width_px": 500,
        "search_debounce_ms": 280,
        "search_files_per_tick": 8,
        "search_max_results": 20000,
        "preview_max_chars": 120,
        "preview_context_chars": 40,
        "mark_min_chunk_chars": 40,
        "mark_max_chunks": 12,
        "binary_extensions": list(DEFAULT_BINARY_EXTENSIONS),
        "skip_dir_names": list(DEFAULT_SKIP_DIR_NAMES),
        "max_walk_depth": 8,
    }


def normalize_editor_settings(raw: Any) -> EditorSettings:
    defaults = default_editor_settings()
    data = dict(defaults)
    if isinstance(raw, dict):
        for key, value in raw.items():
            data[str(key)] = value

    def _clamp_int(value: Any, low: int, high: int, fallback: int) -> int:
        try:
            return max(low, min(high, int(value)))
        except Exception:
            return fallback

    def _name_list(value: Any, fallback: list[str]) -> list[str]:
        if not isinstance(value, (list, tuple)):
            return list(fallback)
        names = [str(item).strip().lower().lstrip(".") for item in value]
        return [name for name in names if name]

    def _dir_list(value: Any, fallback: list[str]) -> list[str]:
        if not isinstance(value, (list, tuple)):
            return list(fallback)
        return [str(item).strip() for item in value if str(item).strip()]

    return {
        "min_annotation_chars": _clamp_int(data.get("min_annotation_chars"), 1, 64, int(defaults["min_annotation_chars"])),
        "overlay_frame_interval_ms": _clamp_int(data.get("overlay_frame_interval_ms"), 5, 250, int(defaults["overlay_frame_interval_ms"])),
        "overlay_hover_epsilon_px": _clamp_int(data.get("overlay_hover_epsilon_px"), 0, 40, int(defaults["overlay_hover_epsilon_px"])),
        "overlay_hover_margin_px": _clamp_int(data.get("overlay_hover_margin_px"), 0, 80, int(defaults["overlay_hover_margin_px"])),
        "overlay_hover_width_px": _clamp_int(data.get("overlay_hover_width_px"), 40, 4000, int(defaults["overlay_hover_width_px"])),
        "search_debounce_ms": _clamp_int(data.get("search_debounce_ms"), 0, 5000, int(defaults["search_debounce_ms"])),
        "search_files_per_tick": _clamp_int(data.get("search_files_per_tick"), 1, 500, int(defaults["search_files_per_tick"])),
        "search_max_results": _clamp_int(data.get("search_max_results"), 1, 200000, int(defaults["search_max_results"])),
        "preview_max_chars": _clamp_int(data.get("preview_max_chars"), 20, 2000, int(defaults["preview_max_chars"])),
        "preview_context_chars": _clamp_int(data.get("preview_context_chars"), 0, 500, int(defaults["preview_context_chars"])),
        "mark_min_chunk_chars": _clamp_int(data.get("mark_min_chunk_chars"), 1, 2000, int(defaults["mark_min_chunk_chars"])),
        "mark_max_chunks": _clamp_int(data.get("mark_max_chunks"), 1, 200, int(defaults["mark_max_chunks"])),
        "binary_extensions": _name_list(data.get("binary_extensions"), defaults["binary_extensions"]),
        "skip_dir_names": _dir_list(data.get("skip_dir_names"), defaults["skip_dir_names"]),
        "max_walk_depth": _clamp_int(data.get("max_walk_depth"), 0, 64, int(defaults["max_walk_depth"])),
    }


@dataclass(slots=True)
class NormalizedEditorConfig:
    min_annotation_chars: int
    overlay_frame_interval_ms: int
    overlay_hover_epsilon_px: int
    overlay_hover_margin_px: int
    overlay_hover_width_px: int
    search_debounce_ms: int
    search_files_per_tick: int
    search_max_results: int
    preview_max_chars: int
    preview_context_chars: int
    mark_min_chunk_chars: int
    mark_max_chunks: int
    binary_extensions: tuple[str, ...]
    skip_dir_names: tuple[str, ...]
    max_walk_depth: int

    @classmethod
    def from_mapping(cls, data: Any) -> "NormalizedEditorConfig":
        n = normalize_editor_settings(data)
        return cls(
            min_annotation_chars=int(n["min_annotation_chars"]),
            overlay_frame_interval_ms=int(n["overlay_frame_interval_ms"]),
            overlay_hover_epsilon_px=int(n["overlay_hover_epsilon_px"]),
            overlay_hover_margin_px=int(n["overlay_hover_margin_px"]),
            overlay_hover_width_px=int(n["overlay_hover_width_px"]),
            search_debounce_ms=int(n["search_debounce_ms"]),
            search_files_per_tick=int(n["search_files_per_tick"]),
            search_max_results=int(n["search_max_results"]),
            preview_max_chars=int(n["preview_max_chars"]),
            preview_context_chars=int(n["preview_context_chars"]),
            mark_min_chunk_chars=int(n["mark_min_chunk_chars"]),
            mark_max_chunks=int(n["mark_max_chunks"]),
            binary_extensions=tuple(n["binary_extensions"]),
            skip_dir_names=tuple(n["skip_dir_names"]),
            max_walk_depth=int(n["max_walk_depth"]),
        )
