"""
review-context — path sandbox for explicit file inclusion

File: src/review_context/security/path_sandbox.py
Last updated: 2026-10-19

Purpose
- Turn a user-supplied path into the set of canonical files that may be read, or
  record why it was blocked.

Functional requirements
- Sensitive locations are rejected before any filesystem access, and again after
  symlink resolution so a link cannot smuggle a credential file in.
- Paths whose real location is outside the project root are blocked unless
  ``allow_external`` is set.
- Directories expand through an explicit worklist bounded by ``MAX_EXPAND_DEPTH``;
  hidden entries and ``node_modules`` are skipped.

Non-functional requirements
- Missing or unresolvable paths are skipped silently; nothing here raises for a bad
  candidate.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import TYPE_CHECKING, Final

from review_context.constants import EXPANSION_SKIPPED_NAMES, MAX_EXPAND_DEPTH
from review_context.domain.models import OmitReason
from review_context.utils.fs import (
    FileSystem,
    LocalFileSystem,
    canonical_path,
    expand_home,
    is_within,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

_SEP: Final[str] = r"[/\\]"

_SENSITIVE_PATH_PATTERNS: Final[tuple[re.Pattern[str], ...]] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        # Version control internals.
        rf"{_SEP}\.git(?:{_SEP}|$)",
        # Keys and key stores.
        rf"{_SEP}\.ssh(?:{_SEP}|$)",
        rf"{_SEP}\.gnupg(?:{_SEP}|$)",
        rf"{_SEP}\.gpg(?:{_SEP}|$)",
        rf"{_SEP}id_rsa",
        rf"{_SEP}id_ed25519",
        rf"{_SEP}id_ecdsa",
        r"\.pem$",
        r"\.key$",
        # Cloud and cluster credentials.
        rf"{_SEP}\.aws(?:{_SEP}|$)",
        rf"{_SEP}\.config{_SEP}(?:gcloud|gh|hub)(?:{_SEP}|$)",
        rf"{_SEP}\.kube(?:{_SEP}|$)",
        rf"{_SEP}\.docker{_SEP}config\.json$",
        # Package manager auth.
        rf"{_SEP}\.netrc$",
        rf"{_SEP}\.npmrc$",
        rf"{_SEP}\.pypirc$",
        # Credential files.
        rf"{_SEP}credentials\.json$",
        rf"{_SEP}service[-_]?account[^/\\]*\.json$",
        rf"{_SEP}\.credentials$",
        r"secrets\.(?:json|ya?ml)$",
        # Environment files: .env, .env.local, .env.production, ...
        rf"{_SEP}\.env(?:$|\.[^/\\]*$)",
        # Infrastructure state.
        r"\.tfvars$",
        r"terraform\.tfstate",
        r"secret\.ya?ml$",
        # Shell history.
        r"\.(?:bash|zsh|sh)_history$",
    )
)


@dataclass(frozen=True, slots=True)
class BlockedPath:
    path: str
    reason: OmitReason


@dataclass(frozen=True, slots=True)
class SandboxResult:
    """Canonical files that passed the sandbox, and the paths it refused."""

    included: tuple[str, ...] = ()
    blocked: tuple[BlockedPath, ...] = ()


def is_sensitive_path(path: str) -> bool:
    """Return whether ``path`` names a known credential or secret location."""

    normalized = os.path.normpath(path)
    return any(pattern.search(normalized) is not None for pattern in _SENSITIVE_PATH_PATTERNS)


def classify(
    input_path: str,
    project_root: str,
    allow_external: bool = False,
    *,
    fs: FileSystem | None = None,
) -> SandboxResult:
    """
    Classify ``input_path`` relative to ``project_root``.

    ``~`` is expanded, relative paths are anchored at ``project_root``, and the
    result is normalized before the first sensitivity check. Included paths are
    real (symlink-free) paths; blocked paths are reported as requested.
    """

    filesystem = fs if fs is not None else LocalFileSystem()
    expanded = PurePath(expand_home(input_path, filesystem.home()))
    if not expanded.is_absolute():
        expanded = PurePath(project_root) / expanded
    requested = os.path.normpath(expanded)

    if is_sensitive_path(requested):
        return SandboxResult(blocked=(BlockedPath(requested, OmitReason.SENSITIVE_PATH),))

    if not filesystem.exists(requested):
        return SandboxResult()
    try:
        real_path = filesystem.realpath(requested)
    except OSError:
        return SandboxResult()

    root = canonical_path(filesystem, project_root)
    blocked_reason = _check_resolved(real_path, root, allow_external)
    if blocked_reason is not None:
        return SandboxResult(blocked=(BlockedPath(requested, blocked_reason),))

    if filesystem.is_file(real_path):
        return SandboxResult(included=(real_path,))
    if filesystem.is_dir(real_path):
        return _expand_directory(filesystem, real_path, root, allow_external)
    return SandboxResult()


def classify_many(
    input_paths: Iterable[str],
    project_root: str,
    allow_external: bool = False,
    *,
    fs: FileSystem | None = None,
) -> SandboxResult:
    """Classify several inputs, keeping each included canonical path once."""

    filesystem = fs if fs is not None else LocalFileSystem()
    included: list[str] = []
    seen: set[str] = set()
    blocked: list[BlockedPath] = []
    for input_path in input_paths:
        result = classify(input_path, project_root, allow_external, fs=filesystem)
        blocked.extend(result.blocked)
        for path in result.included:
            if path not in seen:
                seen.add(path)
                included.append(path)
    return SandboxResult(included=tuple(included), blocked=tuple(blocked))


def _expand_directory(
    fs: FileSystem, directory: str, root: str, allow_external: bool
) -> SandboxResult:
    included: list[str] = []
    blocked: list[BlockedPath] = []
    seen_files: set[str] = set()
    seen_dirs: set[str] = {directory}
    stack: list[tuple[str, int]] = [(directory, 0)]

    while stack:
        current, depth = stack.pop()
        if depth >= MAX_EXPAND_DEPTH:
            continue
        try:
            names = sorted(fs.list_dir(current))
        except OSError:
            continue

        current_path = PurePath(current)
        subdirectories: list[str] = []
        for name in names:
            if name.startswith(".") or name in EXPANSION_SKIPPED_NAMES:
                continue
            entry = str(current_path / name)
            try:
                entry_real = fs.realpath(entry)
            except OSError:
                continue

            reason = _check_resolved(entry_real, root, allow_external)
            if reason is not None:
                blocked.append(BlockedPath(entry, reason))
                continue

            if fs.is_file(entry_real):
                if entry_real not in seen_files:
                    seen_files.add(entry_real)
                    included.append(entry_real)
            elif fs.is_dir(entry_real) and entry_real not in seen_dirs:
                seen_dirs.add(entry_real)
                subdirectories.append(entry_real)

        # Reversed so the stack pops siblings in sorted order.
        stack.extend((subdirectory, depth + 1) for subdirectory in reversed(subdirectories))

    return SandboxResult(included=tuple(included), blocked=tuple(blocked))


def _check_resolved(real_path: str, root: str, allow_external: bool) -> OmitReason | None:
    if is_sensitive_path(real_path):
        return OmitReason.SENSITIVE_PATH
    if not allow_external and not is_within(real_path, root):
        return OmitReason.OUTSIDE_PROJECT_REQUIRES_ALLOW
    return None


__all__ = [
    "BlockedPath",
    "SandboxResult",
    "classify",
    "classify_many",
    "is_sensitive_path",
]
