"""
review-context — textual import graph

File: src/review_context/knowledge_plane/import_graph.py
Last updated: 2026-10-19

Purpose
- Extract import specifiers from JavaScript/TypeScript sources, resolve them to
  project files, and build a reverse ("imported by") index for dependent lookups.

Functional requirements
- Only project-local specifiers (``./``, ``../``, ``/``, ``@/``) are resolved.
- A resolved target outside the project root counts as unresolved.
- The project-wide index reads each source file once; self-edges are never recorded.

Non-functional requirements
- Heuristic pattern matching: unusual syntax yields a missed import, never an error.
- Deterministic output for the same working tree.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import TYPE_CHECKING, Final

from review_context.constants import (
    CODE_EXTENSIONS,
    INDEX_EXCLUDED_DIRECTORIES,
    SOURCE_ALIAS_DIRECTORY,
    SOURCE_ALIAS_PREFIX,
)
from review_context.utils.fs import (
    FileSystem,
    LocalFileSystem,
    canonical_path,
    is_within,
    read_text_or_none,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

_IMPORT_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    # import x from 'y' / import { a, b } from 'y' / import 'y'
    re.compile(r"import\s+(?:[\w*{}\s,]+\s+from\s+)?['\"]([^'\"]+)['\"]"),
    # import('y')
    re.compile(r"import\s*\(\s*['\"]([^'\"]+)['\"]\s*\)"),
    # require('y')
    re.compile(r"require\s*\(\s*['\"]([^'\"]+)['\"]\s*\)"),
    # export { a } from 'y' / export * from 'y'
    re.compile(r"export\s+(?:[\w*{}\s,]+\s+)?from\s+['\"]([^'\"]+)['\"]"),
)

_LOCAL_PREFIXES: Final[tuple[str, ...]] = (".", "/", SOURCE_ALIAS_PREFIX)


@dataclass(slots=True)
class ImportIndex:
    """Forward and reverse import edges between canonical project paths."""

    imports: dict[str, set[str]] = field(default_factory=dict)
    imported_by: dict[str, set[str]] = field(default_factory=dict)

    def add_edge(self, importer: str, target: str) -> None:
        if importer == target:
            return
        self.imports.setdefault(importer, set()).add(target)
        self.imported_by.setdefault(target, set()).add(importer)

    def dependents_of(self, path: str) -> frozenset[str]:
        return frozenset(self.imported_by.get(path, ()))

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.imports.values())


def extract_imports(source_text: str) -> frozenset[str]:
    """Return the distinct module specifiers referenced by ``source_text``."""

    specifiers: set[str] = set()
    for pattern in _IMPORT_PATTERNS:
        for match in pattern.finditer(source_text):
            specifiers.add(match.group(1))
    return frozenset(specifiers)


def is_local_specifier(specifier: str) -> bool:
    return specifier.startswith(_LOCAL_PREFIXES)


def resolve_import_path(
    specifier: str,
    from_file: str,
    project_root: str,
    *,
    fs: FileSystem | None = None,
) -> str | None:
    """
    Resolve ``specifier`` imported by ``from_file`` to a canonical project file.

    Candidates are probed in order: the target itself, the target with each code
    extension, then ``index`` files with each extension inside the target. The first
    regular file wins, but only if its real path is inside ``project_root``.
    """

    if not is_local_specifier(specifier):
        return None

    filesystem = fs if fs is not None else LocalFileSystem()
    if specifier.startswith(SOURCE_ALIAS_PREFIX):
        unresolved = PurePath(
            project_root, SOURCE_ALIAS_DIRECTORY, specifier[len(SOURCE_ALIAS_PREFIX) :]
        )
    elif specifier.startswith("/"):
        unresolved = PurePath(project_root, specifier.lstrip("/"))
    else:
        unresolved = PurePath(from_file).parent / specifier
    target = os.path.normpath(unresolved)

    candidates = [
        target,
        *(target + extension for extension in CODE_EXTENSIONS),
        *(str(PurePath(target, "index" + extension)) for extension in CODE_EXTENSIONS),
    ]
    for candidate in candidates:
        if not filesystem.is_file(candidate):
            continue
        try:
            real_candidate = filesystem.realpath(candidate)
        except OSError:
            return None
        if not is_within(real_candidate, canonical_path(filesystem, project_root)):
            return None
        return real_candidate
    return None


def get_dependencies(
    file_path: str,
    project_root: str,
    *,
    fs: FileSystem | None = None,
) -> tuple[str, ...]:
    """Return the resolved project files imported by ``file_path`` (sorted)."""

    filesystem = fs if fs is not None else LocalFileSystem()
    source = read_text_or_none(filesystem, file_path)
    if source is None:
        return ()

    try:
        own_path = filesystem.realpath(file_path)
    except OSError:
        own_path = file_path

    resolved: set[str] = set()
    for specifier in extract_imports(source):
        target = resolve_import_path(specifier, own_path, project_root, fs=filesystem)
        if target is not None and target != own_path:
            resolved.add(target)
    return tuple(sorted(resolved))


def get_dependencies_for_files(
    files: Iterable[str],
    project_root: str,
    *,
    fs: FileSystem | None = None,
) -> tuple[str, ...]:
    """Union of dependencies of ``files``, excluding ``files`` themselves."""

    filesystem = fs if fs is not None else LocalFileSystem()
    inputs = tuple(files)
    excluded = set(inputs)
    collected: dict[str, None] = {}
    for file_path in inputs:
        for dependency in get_dependencies(file_path, project_root, fs=filesystem):
            if dependency not in excluded:
                collected.setdefault(dependency, None)
    return tuple(collected)


def build_import_index(project_root: str, *, fs: FileSystem | None = None) -> ImportIndex:
    """Scan every code file under ``project_root`` once and index its resolved imports."""

    filesystem = fs if fs is not None else LocalFileSystem()
    root = canonical_path(filesystem, project_root)
    index = ImportIndex()

    for source_path in iter_source_files(root, fs=filesystem):
        source = read_text_or_none(filesystem, source_path)
        if source is None:
            continue
        try:
            importer = filesystem.realpath(source_path)
        except OSError:
            continue
        if not is_within(importer, root):
            continue
        for specifier in extract_imports(source):
            target = resolve_import_path(specifier, importer, root, fs=filesystem)
            if target is not None:
                index.add_edge(importer, target)
    return index


def get_dependents_from_index(files: Iterable[str], index: ImportIndex) -> tuple[str, ...]:
    """Return every importer of ``files``, excluding ``files`` themselves (sorted)."""

    inputs = set(files)
    dependents: set[str] = set()
    for file_path in inputs:
        dependents.update(index.dependents_of(file_path))
    return tuple(sorted(dependents - inputs))


def get_dependents_for_files(
    files: Iterable[str],
    project_root: str,
    *,
    fs: FileSystem | None = None,
) -> tuple[str, ...]:
    return get_dependents_from_index(files, build_import_index(project_root, fs=fs))


def iter_source_files(root: str, *, fs: FileSystem) -> list[str]:
    """
    List code files under ``root`` in sorted order.

    Hidden entries and excluded directories are pruned; symlinked directories are not
    followed.
    """

    found: list[str] = []
    stack = [root]
    while stack:
        current = stack.pop()
        try:
            names = sorted(fs.list_dir(current))
        except OSError:
            continue
        current_path = PurePath(current)
        for name in names:
            if name.startswith("."):
                continue
            entry = str(current_path / name)
            if fs.is_dir(entry):
                if name in INDEX_EXCLUDED_DIRECTORIES or fs.is_symlink(entry):
                    continue
                stack.append(entry)
            elif name.endswith(CODE_EXTENSIONS) and fs.is_file(entry):
                found.append(entry)
    found.sort()
    return found


__all__ = [
    "ImportIndex",
    "build_import_index",
    "extract_imports",
    "get_dependencies",
    "get_dependencies_for_files",
    "get_dependents_for_files",
    "get_dependents_from_index",
    "is_local_specifier",
    "iter_source_files",
    "resolve_import_path",
]
