"""Interfaces of the sources the context bundler draws candidates from."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """
    Editing-session view consumed by the bundler.

    Paths are absolute. ``file_contents`` holds the content the session actually saw,
    keyed by path, and takes precedence over the working tree.
    """

    files_read: tuple[str, ...] = ()
    files_written: tuple[str, ...] = ()
    files_edited: tuple[str, ...] = ()
    file_contents: Mapping[str, str] = field(default_factory=dict)
    conversation: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "files_read", tuple(self.files_read))
        object.__setattr__(self, "files_written", tuple(self.files_written))
        object.__setattr__(self, "files_edited", tuple(self.files_edited))
        object.__setattr__(self, "file_contents", MappingProxyType(dict(self.file_contents)))

    @property
    def modified_paths(self) -> frozenset[str]:
        return frozenset(self.files_written) | frozenset(self.files_edited)

    def candidate_paths(self) -> tuple[str, ...]:
        """Written, then edited, then read paths; first occurrence wins."""

        ordered: dict[str, None] = {}
        for path in (*self.files_written, *self.files_edited, *self.files_read):
            ordered.setdefault(path, None)
        return tuple(ordered)


class SessionSource(Protocol):
    """Provides the editing session for a project, if one exists."""

    def load(self, project_root: str) -> SessionSnapshot | None:
        """Return the session snapshot, or ``None`` when there is no session."""


class GitSource(Protocol):
    """Provides paths with uncommitted changes."""

    def changed_files(self, project_root: str) -> Sequence[str]:
        """Return absolute paths of changed files."""


class RelatedFileFinder(Protocol):
    """Finds files related to a set of modified sources (tests, type definitions)."""

    def find(self, files: Sequence[str], project_root: str) -> Sequence[str]:
        """Return related paths, excluding ``files`` themselves."""


class StaticSessionSource:
    """``SessionSource`` that always returns the same snapshot."""

    def __init__(self, snapshot: SessionSnapshot | None) -> None:
        self._snapshot = snapshot

    def load(self, project_root: str) -> SessionSnapshot | None:
        return self._snapshot


class NullGitSource:
    """``GitSource`` for projects without version control."""

    def changed_files(self, project_root: str) -> Sequence[str]:
        return ()


__all__ = [
    "GitSource",
    "NullGitSource",
    "RelatedFileFinder",
    "SessionSnapshot",
    "SessionSource",
    "StaticSessionSource",
]
