"""
review-context — filesystem capability

File: src/review_context/utils/fs.py
Last updated: 2026-10-19

Purpose
- Provide the narrow filesystem interface (read, stat, list, real path) used by the
  sandbox, import graph, and bundler, plus path containment helpers.

Functional requirements
- ``realpath`` is strict: missing or unresolvable paths raise ``OSError``.
- Containment checks compare canonical paths component-wise, never by string prefix.

Non-functional requirements
- Standard library only; core logic stays testable against an in-memory implementation.
"""

from __future__ import annotations

import os
from pathlib import PurePath
from typing import Protocol, runtime_checkable

PathLike = str | os.PathLike[str]

__all__ = [
    "FileSystem",
    "LocalFileSystem",
    "canonical_path",
    "expand_home",
    "is_within",
    "read_text_or_none",
]


@runtime_checkable
class FileSystem(Protocol):
    """Read-only filesystem operations needed for context assembly."""

    def read_text(self, path: str) -> str: ...

    def realpath(self, path: str) -> str: ...

    def exists(self, path: str) -> bool: ...

    def is_file(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def is_symlink(self, path: str) -> bool: ...

    def list_dir(self, path: str) -> list[str]: ...

    def home(self) -> str: ...


class LocalFileSystem:
    """``FileSystem`` backed by the host operating system."""

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    def read_text(self, path: str) -> str:
        with open(path, encoding=self._encoding) as handle:
            return handle.read()

    def realpath(self, path: str) -> str:
        return os.path.realpath(path, strict=True)

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def is_symlink(self, path: str) -> bool:
        return os.path.islink(path)

    def list_dir(self, path: str) -> list[str]:
        return os.listdir(path)

    def home(self) -> str:
        return os.path.expanduser("~")


def expand_home(path: str, home: str) -> str:
    """Expand a leading ``~`` or ``~/`` marker against ``home``."""

    if path == "~":
        return home
    if path.startswith(("~/", "~\\")):
        return str(PurePath(home) / path[2:])
    return path


def is_within(child: PathLike, parent: PathLike) -> bool:
    """Return ``True`` if canonical ``child`` equals or descends from canonical ``parent``."""

    return _is_relative_to(PurePath(os.fspath(child)), PurePath(os.fspath(parent)))


def canonical_path(fs: FileSystem, path: str) -> str:
    """Return the real path of ``path``, or its normalized form when it cannot be resolved."""

    try:
        return fs.realpath(path)
    except OSError:
        return os.path.normpath(path)


def read_text_or_none(fs: FileSystem, path: str) -> str | None:
    """Read ``path`` as text, treating unreadable or undecodable files as absent."""

    try:
        return fs.read_text(path)
    except (OSError, UnicodeDecodeError):
        return None


def _is_relative_to(child: PurePath, parent: PurePath) -> bool:
    try:
        child.relative_to(parent)
    except ValueError:
        return False
    return True
