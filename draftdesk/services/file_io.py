"""Safe file read/write helpers."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


class FileIOError(RuntimeError):
    """Raised when a workspace file cannot be read or written."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = str(path)


class ReadError(FileIOError):
    pass


class WriteError(FileIOError):
    pass


def read_text(path: str, *, encoding: str = "utf-8", errors: str = "strict") -> str:
    try:
        return Path(path).read_text(encoding=encoding, errors=errors)
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(path, f"Could not read '{path}': {exc}") from exc


def write_text(path: str, text: str, *, encoding: str = "utf-8") -> None:
    try:
        Path(path).write_text(text, encoding=encoding)
    except (OSError, UnicodeEncodeError) as exc:
        raise WriteError(path, f"Could not write '{path}': {exc}") from exc


def atomic_write_text(path: str, text: str, *, encoding: str = "utf-8") -> None:
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=target.name + ".", suffix=".tmp", dir=str(target.parent))
    except OSError as exc:
        raise WriteError(path, f"Could not write '{path}': {exc}") from exc
    try:
        with os.fdopen(fd, "w", encoding=encoding) as handle:
            handle.write(text)
        os.replace(tmp_path, target)
    except OSError as exc:
        raise WriteError(path, f"Could not write '{path}': {exc}") from exc
    finally:
        if os.path.exists(tmp_path):
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
