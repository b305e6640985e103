import os

import pytest

from draftdesk.services import file_io
from draftdesk.services.workspace_files import DiskWorkspaceStorage, is_binary_name, iter_workspace_text_files
from draftdesk.settings_schema import NormalizedEditorConfig


def _touch(path, text="hello\n"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "name, expected",
    [
        ("notes.md", False),
        ("README", False),
        ("photo.PNG", True),
        ("clip.mp4", True),
        ("board.tldr.json", True),
        ("data.json", False),
    ],
)
def test_is_binary_name(name, expected):
    assert is_binary_name(name) is expected


def test_walk_skips_binaries_hidden_and_tool_directories(tmp_path):
    _touch(tmp_path / "b.md")
    _touch(tmp_path / "a.txt")
    _touch(tmp_path / "cover.png")
    _touch(tmp_path / "sketch.tldr.json")
    _touch(tmp_path / ".hidden.md")
    _touch(tmp_path / ".git" / "config")
    _touch(tmp_path / "node_modules" / "pkg" / "index.js")
    _touch(tmp_path / ".draftdesk" / "ai-marks.json", "[]")
    _touch(tmp_path / "chapters" / "one.md")

    found = iter_workspace_text_files(str(tmp_path))
    rel = [os.path.relpath(path, tmp_path) for path in found]
    assert rel == ["a.txt", "b.md", os.path.join("chapters", "one.md")]
    assert all(os.path.isabs(path) for path in found)


def test_walk_respects_depth_limit(tmp_path):
    _touch(tmp_path / "top.md")
    _touch(tmp_path / "one" / "two" / "deep.md")
    shallow = iter_workspace_text_files(str(tmp_path), max_depth=1)
    assert [os.path.basename(path) for path in shallow] == ["top.md"]
    deep = iter_workspace_text_files(str(tmp_path), max_depth=8)
    assert sorted(os.path.basename(path) for path in deep) == ["deep.md", "top.md"]


def test_walk_of_missing_root_is_empty(tmp_path):
    assert iter_workspace_text_files(str(tmp_path / "nope")) == []


def test_disk_storage_round_trip(tmp_path):
    target = _touch(tmp_path / "draft.md", "cat and cat\n")
    storage = DiskWorkspaceStorage()
    assert storage.list_text_files(str(tmp_path)) == [str(target)]
    assert storage.read_text(str(target)) == "cat and cat\n"
    storage.write_text(str(target), "dog\n")
    assert target.read_text(encoding="utf-8") == "dog\n"


def test_read_errors_are_wrapped(tmp_path):
    missing = tmp_path / "missing.md"
    with pytest.raises(file_io.ReadError) as info:
        file_io.read_text(str(missing))
    assert info.value.path == str(missing)


def test_undecodable_file_is_a_read_error(tmp_path):
    target = tmp_path / "latin.md"
    target.write_bytes(b"\xff\xfe\xfa")
    with pytest.raises(file_io.ReadError):
        DiskWorkspaceStorage().read_text(str(target))


def test_write_into_missing_directory_is_a_write_error(tmp_path):
    with pytest.raises(file_io.WriteError):
        file_io.write_text(str(tmp_path / "nope" / "file.md"), "x")


def test_atomic_write_creates_parents(tmp_path):
    target = tmp_path / ".draftdesk" / "ai-marks.json"
    file_io.atomic_write_text(str(target), "[]")
    assert target.read_text(encoding="utf-8") == "[]"
    assert [p.name for p in target.parent.iterdir()] == ["ai-marks.json"]


def test_disk_storage_from_config(tmp_path):
    _touch(tmp_path / "drafts" / "one.md")
    _touch(tmp_path / "notes.psd")
    cfg = NormalizedEditorConfig.from_mapping({"skip_dir_names": ["drafts"], "binary_extensions": ["psd"]})
    storage = DiskWorkspaceStorage.from_config(cfg)
    assert storage.list_text_files(str(tmp_path)) == []
