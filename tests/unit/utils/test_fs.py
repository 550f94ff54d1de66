"""
review-context — unit tests for filesystem helpers

File: tests/unit/utils/test_fs.py
Last updated: 2026-10-19

Purpose
- Validate home expansion, lexical containment, canonicalization, and tolerant reads.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from review_context.utils.fs import (
    FileSystem,
    LocalFileSystem,
    canonical_path,
    expand_home,
    is_within,
    read_text_or_none,
)


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("~", "/home/dev"),
        ("~/notes.md", "/home/dev/notes.md"),
        ("~other/notes.md", "~other/notes.md"),
        ("src/~/x", "src/~/x"),
    ],
)
def test_expand_home(path: str, expected: str) -> None:
    assert expand_home(path, "/home/dev") == expected


def test_is_within_is_component_aware() -> None:
    assert is_within("/work/app/src/a.ts", "/work/app")
    assert is_within("/work/app", "/work/app")
    assert not is_within("/work/application/a.ts", "/work/app")
    assert not is_within("/etc/passwd", "/work/app")


def test_canonical_path_resolves_links_and_normalizes_missing(tmp_path: Path) -> None:
    target = tmp_path / "real.txt"
    target.write_text("x", encoding="utf-8")
    link = tmp_path / "link.txt"
    link.symlink_to(target)
    fs = LocalFileSystem()

    assert canonical_path(fs, str(link)) == os.path.realpath(target)
    assert canonical_path(fs, "/nowhere/./a/../b") == "/nowhere/b"


def test_read_text_or_none_tolerates_missing_and_binary(tmp_path: Path) -> None:
    text = tmp_path / "a.ts"
    text.write_text("export {};\n", encoding="utf-8")
    binary = tmp_path / "blob.bin"
    binary.write_bytes(b"\xff\xfe\x00\x80")
    fs = LocalFileSystem()

    assert read_text_or_none(fs, str(text)) == "export {};\n"
    assert read_text_or_none(fs, str(binary)) is None
    assert read_text_or_none(fs, str(tmp_path / "missing.ts")) is None
    assert read_text_or_none(fs, str(tmp_path)) is None


def test_local_file_system_satisfies_protocol(tmp_path: Path) -> None:
    (tmp_path / "b").mkdir()
    (tmp_path / "a.txt").write_text("", encoding="utf-8")
    fs = LocalFileSystem()

    assert isinstance(fs, FileSystem)
    assert sorted(fs.list_dir(str(tmp_path))) == ["a.txt", "b"]
    assert fs.is_dir(str(tmp_path / "b")) and fs.is_file(str(tmp_path / "a.txt"))
    with pytest.raises(OSError):
        fs.realpath(str(tmp_path / "missing"))
