"""Workspace file enumeration and the storage contract used by workspace search."""

from __future__ import annotations

import os
from typing import Iterable, Protocol

from . import file_io
from ..settings_schema import DEFAULT_BINARY_EXTENSIONS, DEFAULT_SKIP_DIR_NAMES, NormalizedEditorConfig


COMPOUND_BINARY_SUFFIXES = (".tldr.json",)


class WorkspaceStorage(Protocol):
    def list_text_files(self, root_path: str) -> list[str]:
        ...

    def read_text(self, path: str) -> str:
        ...

    def write_text(self, path: str, content: str) -> None:
        ...


def is_binary_name(name: str, binary_extensions: Iterable[str] = DEFAULT_BINARY_EXTENSIONS) -> bool:
    lowered = str(name or "").lower()
    if any(lowered.endswith(suffix) for suffix in COMPOUND_BINARY_SUFFIXES):
        return True
    if "." not in lowered:
        return False
    ext = lowered.rsplit(".", 1)[1]
    return ext in {str(item).lower().lstrip(".") for item in binary_extensions}


def iter_workspace_text_files(
    root_path: str,
    *,
    binary_extensions: Iterable[str] = DEFAULT_BINARY_EXTENSIONS,
    skip_dir_names: Iterable[str] = DEFAULT_SKIP_DIR_NAMES,
    max_depth: int = 8,
    follow_symlinks: bool = False,
) -> list[str]:
    """Walk ``root_path`` and return text-file paths, sorted within each directory.

    Hidden entries and skip-listed directories are pruned; files with a binary
    extension (or a compound binary suffix) are left out.
    """
    files: list[str] = []
    root = os.path.abspath(root_path)
    if not os.path.isdir(root):
        return files
    extensions = tuple(binary_extensions)
    skipped = set(skip_dir_names)
    for walk_root, dirnames, filenames in os.walk(root, topdown=True, followlinks=follow_symlinks):
        rel_root = os.path.relpath(walk_root, root)
        depth = 0 if rel_root == os.curdir else rel_root.count(os.sep) + 1
        if depth >= max_depth:
            dirnames[:] = []
        else:
            dirnames[:] = [
                dirname
                for dirname in sorted(dirnames)
                if dirname not in skipped and not dirname.startswith(".")
            ]

        for filename in sorted(filenames):
            if filename.startswith(".") or filename in skipped:
                continue
            if is_binary_name(filename, extensions):
                continue
            files.append(os.path.join(walk_root, filename))
    return files


class DiskWorkspaceStorage:
    """Local file-system implementation of :class:`WorkspaceStorage`."""

    def __init__(
        self,
        *,
        binary_extensions: Iterable[str] = DEFAULT_BINARY_EXTENSIONS,
        skip_dir_names: Iterable[str] = DEFAULT_SKIP_DIR_NAMES,
        max_depth: int = 8,
    ) -> None:
        self.binary_extensions = tuple(binary_extensions)
        self.skip_dir_names = tuple(skip_dir_names)
        self.max_depth = int(max_depth)

    @classmethod
    def from_config(cls, cfg: NormalizedEditorConfig) -> "DiskWorkspaceStorage":
        return cls(
            binary_extensions=cfg.binary_extensions,
            skip_dir_names=cfg.skip_dir_names,
            max_depth=cfg.max_walk_depth,
        )

    def list_text_files(self, root_path: str) -> list[str]:
        return iter_workspace_text_files(
            root_path,
            binary_extensions=self.binary_extensions,
            skip_dir_names=self.skip_dir_names,
            max_depth=self.max_depth,
        )

    def read_text(self, path: str) -> str:
        return file_io.read_text(path, encoding="utf-8")

    def write_text(self, path: str, content: str) -> None:
        file_io.write_text(path, content, encoding="utf-8")
