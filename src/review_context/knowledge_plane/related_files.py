"""
review-context — test and type file discovery

File: src/review_context/knowledge_plane/related_files.py
Last updated: 2026-10-19

Purpose
- Find test files and type-definition files related to a set of modified sources.

Functional requirements
- Tests are probed by naming convention beside the source, in a nearby ``__tests__``
  directory, and in top-level test roots mirroring the source layout.
- Type files are the resolved imports of a source that look like type definitions.
- Results never include the input files and list each canonical path once.
"""

from __future__ import annotations

import os
import re
from pathlib import PurePath
from typing import TYPE_CHECKING, Final

from review_context.constants import SOURCE_ALIAS_DIRECTORY, TEST_ROOT_DIRECTORIES
from review_context.knowledge_plane.import_graph import extract_imports, resolve_import_path
from review_context.utils.fs import (
    FileSystem,
    LocalFileSystem,
    canonical_path,
    is_within,
    read_text_or_none,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

_TYPE_DIRECTORY_MARKERS: Final[tuple[str, ...]] = (
    "/types/",
    "/interfaces/",
    "/models/",
    "/@types/",
)
_TYPE_FILE_NAME: Final[re.Pattern[str]] = re.compile(r"/(?:types?|interfaces?)\.(?:ts|js)$")


def candidate_test_paths(file_path: str, project_root: str) -> list[str]:
    """Return the conventional test locations for ``file_path``, most local first."""

    source = PurePath(file_path)
    directory = source.parent
    base_name, extension = source.stem, source.suffix
    suffixes = (f".test{extension}", f".spec{extension}", extension)

    candidates = [directory / (base_name + suffix) for suffix in suffixes[:2]]
    candidates.extend(directory / "__tests__" / (base_name + suffix) for suffix in suffixes)
    if extension == ".py":
        candidates.append(directory / f"test_{base_name}.py")
        candidates.append(directory / f"{base_name}_test.py")

    mirrored = _strip_source_prefix(os.path.relpath(directory, project_root))
    names = [base_name + suffix for suffix in suffixes]
    if extension == ".py":
        names.append(f"test_{base_name}.py")

    for test_root in TEST_ROOT_DIRECTORIES:
        root_dir = PurePath(project_root, test_root)
        if mirrored not in ("", os.curdir):
            candidates.extend(root_dir / mirrored / name for name in names)
        candidates.extend(root_dir / name for name in names)
    return [str(candidate) for candidate in candidates]


def is_type_file(path: str, project_root: str | None = None) -> bool:
    """Return whether ``path`` looks like a type-definition module."""

    if project_root is not None and is_within(path, project_root):
        path = "/" + os.path.relpath(path, project_root)
    normalized = path.replace("\\", "/").lower()
    return (
        normalized.endswith(".d.ts")
        or any(marker in normalized for marker in _TYPE_DIRECTORY_MARKERS)
        or _TYPE_FILE_NAME.search(normalized) is not None
    )


class TestFileFinder:
    """Locate test files for modified sources by naming convention."""

    __test__ = False

    def __init__(self, *, fs: FileSystem | None = None) -> None:
        self._fs = fs if fs is not None else LocalFileSystem()

    def find(self, files: Sequence[str], project_root: str) -> list[str]:
        inputs = set(files)
        found: dict[str, None] = {}
        for file_path in files:
            for candidate in candidate_test_paths(file_path, project_root):
                if not self._fs.is_file(candidate):
                    continue
                resolved = canonical_path(self._fs, candidate)
                if resolved not in inputs:
                    found.setdefault(resolved, None)
        return list(found)


class TypeFileFinder:
    """Locate type-definition files imported by modified sources."""

    def __init__(self, *, fs: FileSystem | None = None) -> None:
        self._fs = fs if fs is not None else LocalFileSystem()

    def find(self, files: Sequence[str], project_root: str) -> list[str]:
        root = canonical_path(self._fs, project_root)
        inputs = set(files)
        found: dict[str, None] = {}
        for file_path in files:
            source = read_text_or_none(self._fs, file_path)
            if source is None:
                continue
            for target in self._resolved_imports(source, file_path, root):
                if target not in inputs and is_type_file(target, root):
                    found.setdefault(target, None)
        return list(found)

    def _resolved_imports(self, source: str, file_path: str, root: str) -> Iterable[str]:
        for specifier in sorted(extract_imports(source)):
            target = resolve_import_path(specifier, file_path, root, fs=self._fs)
            if target is not None:
                yield target


def _strip_source_prefix(relative_dir: str) -> str:
    normalized = relative_dir.replace("\\", "/")
    if normalized == SOURCE_ALIAS_DIRECTORY:
        return ""
    prefix = SOURCE_ALIAS_DIRECTORY + "/"
    if normalized.startswith(prefix):
        return normalized[len(prefix) :]
    return normalized


__all__ = [
    "TestFileFinder",
    "TypeFileFinder",
    "is_type_file",
    "candidate_test_paths",
]
