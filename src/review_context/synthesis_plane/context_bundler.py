"""
review-context — context bundler

File: src/review_context/synthesis_plane/context_bundler.py
Last updated: 2026-10-19

Purpose
- Build one ``ContextBundle``: gather candidates from explicit paths, the editing
  session, git, the import graph, and test/type finders, then admit them under a
  shared token budget in priority order.

What should be included in this file
- Top-level argument validation (the only fatal errors of a bundling pass).
- Per-category candidate collection, sensitive-path filtering, and redaction.
- Budget admission through ``BudgetAllocator``; every category runs, even when empty.

Functional requirements
- A canonical path is admitted at most once, under the first category that claims it.
- Sensitive candidates are recorded as omitted and never read.
- Unreadable, undecodable, or vanished candidates are dropped without aborting the pass.

Non-functional requirements
- Single pass, synchronous; no state is shared between ``bundle`` calls.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from review_context.constants import DEFAULT_MAX_TOKENS
from review_context.control_plane.budgets import BudgetAllocator, estimate_tokens
from review_context.domain.models import (
    ContextBundle,
    FileCategory,
    FileEntry,
    OmitReason,
    OmittedFile,
    RedactionStats,
)
from review_context.integration_plane.git_changes import GitChangeSource
from review_context.knowledge_plane.import_graph import (
    build_import_index,
    get_dependencies_for_files,
    get_dependents_from_index,
)
from review_context.knowledge_plane.related_files import TestFileFinder, TypeFileFinder
from review_context.security.path_sandbox import classify_many, is_sensitive_path
from review_context.security.redaction import RedactionResult, redact_secrets
from review_context.utils.fs import FileSystem, LocalFileSystem, canonical_path, read_text_or_none

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from review_context.synthesis_plane.collaborators import (
        GitSource,
        RelatedFileFinder,
        SessionSnapshot,
        SessionSource,
    )


class BundleInputError(ValueError):
    """Raised when top-level bundling arguments are invalid."""


@dataclass(frozen=True, slots=True)
class BundleOptions:
    """Inputs of one bundling pass."""

    project_root: str
    include_paths: tuple[str, ...] = ()
    allow_external: bool = False
    token_ceiling: int = DEFAULT_MAX_TOKENS
    include_conversation: bool = True
    include_dependencies: bool = True
    include_dependents: bool = True
    include_tests: bool = True
    include_types: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.include_paths, str):
            raise BundleInputError("include_paths must be a sequence of paths, not a string")
        object.__setattr__(self, "include_paths", tuple(self.include_paths))
        if isinstance(self.token_ceiling, bool) or not isinstance(self.token_ceiling, int):
            raise BundleInputError("token_ceiling must be an integer")
        if self.token_ceiling <= 0:
            raise BundleInputError("token_ceiling must be > 0")


@dataclass(slots=True)
class _BundleRun:
    root: str
    allocator: BudgetAllocator
    files: list[FileEntry] = field(default_factory=list)
    omitted: list[OmittedFile] = field(default_factory=list)
    redactions: dict[str, RedactionResult] = field(default_factory=dict)
    modified: dict[str, None] = field(default_factory=dict)

    @property
    def modified_files(self) -> list[str]:
        return list(self.modified)


class ContextBundler:
    """Assemble context bundles from pluggable candidate sources."""

    def __init__(
        self,
        *,
        session_source: SessionSource | None = None,
        git_source: GitSource | None = None,
        test_finder: RelatedFileFinder | None = None,
        type_finder: RelatedFileFinder | None = None,
        fs: FileSystem | None = None,
        logger: Any | None = None,
    ) -> None:
        self._fs = fs if fs is not None else LocalFileSystem()
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._session_source = session_source
        self._git_source = git_source if git_source is not None else GitChangeSource()
        self._test_finder = test_finder if test_finder is not None else TestFileFinder(fs=self._fs)
        self._type_finder = type_finder if type_finder is not None else TypeFileFinder(fs=self._fs)

    def bundle(self, options: BundleOptions) -> ContextBundle:
        root = self._validate_root(options.project_root)
        session = (
            self._session_source.load(root) if self._session_source is not None else None
        )

        conversation = ""
        if options.include_conversation and session is not None:
            conversation = session.conversation
        conversation_tokens = estimate_tokens(conversation)

        run = _BundleRun(
            root=root,
            allocator=BudgetAllocator(
                options.token_ceiling,
                conversation_tokens,
                project_root=root,
                logger=self._logger,
            ),
        )

        self._process_explicit(run, options)
        self._process_session(run, session)
        self._process_git(run)

        modified = run.modified_files
        if options.include_dependencies and modified:
            paths = get_dependencies_for_files(modified, root, fs=self._fs)
            self._process_discovered(run, FileCategory.DEPENDENCY, paths, smallest_first=True)
        else:
            run.allocator.skip(FileCategory.DEPENDENCY)

        if options.include_dependents and modified:
            index = build_import_index(root, fs=self._fs)
            paths = get_dependents_from_index(modified, index)
            self._process_discovered(run, FileCategory.DEPENDENT, paths, smallest_first=True)
        else:
            run.allocator.skip(FileCategory.DEPENDENT)

        if options.include_tests and modified:
            paths = self._test_finder.find(modified, root)
            self._process_discovered(run, FileCategory.TEST, paths, smallest_first=False)
        else:
            run.allocator.skip(FileCategory.TEST)

        if options.include_types and modified:
            paths = self._type_finder.find(modified, root)
            self._process_discovered(run, FileCategory.TYPE, paths, smallest_first=True)
        else:
            run.allocator.skip(FileCategory.TYPE)

        bundle = self._finish(run, conversation, conversation_tokens)
        self._logger.info(
            "context_bundle_built",
            project_root=root,
            files=len(bundle.files),
            omitted=len(bundle.omitted_files),
            total_tokens=bundle.total_tokens,
            token_ceiling=options.token_ceiling,
            redactions=bundle.redaction_stats.total_count,
            warnings=len(bundle.budget_warnings),
        )
        return bundle

    def _validate_root(self, project_root: str) -> str:
        if not isinstance(project_root, str) or not project_root:
            raise BundleInputError("project_root must be a non-empty path string")
        if not os.path.isabs(project_root):
            raise BundleInputError(f"project_root must be absolute: {project_root}")
        if not self._fs.is_dir(project_root):
            raise BundleInputError(f"project_root is not an existing directory: {project_root}")
        return canonical_path(self._fs, project_root)

    def _process_explicit(self, run: _BundleRun, options: BundleOptions) -> None:
        sandbox = classify_many(
            options.include_paths, run.root, options.allow_external, fs=self._fs
        )
        for blocked in sandbox.blocked:
            run.omitted.append(
                OmittedFile(
                    path=blocked.path,
                    category=FileCategory.EXPLICIT,
                    token_estimate=0,
                    reason=blocked.reason,
                )
            )

        entries = [
            entry
            for entry in (
                self._read_entry(run, path, FileCategory.EXPLICIT) for path in sandbox.included
            )
            if entry is not None
        ]
        self._admit(run, FileCategory.EXPLICIT, entries, skip_bounds_check=True)

    def _process_session(self, run: _BundleRun, session: SessionSnapshot | None) -> None:
        if session is None:
            run.allocator.skip(FileCategory.SESSION)
            return

        modified_paths = session.modified_paths
        entries: list[FileEntry] = []
        seen: set[str] = set()
        for raw_path in session.candidate_paths():
            cached = session.file_contents.get(raw_path)
            path = self._screen(
                run, raw_path, FileCategory.SESSION, allow_missing=cached is not None
            )
            if path is None or path in seen:
                continue
            seen.add(path)
            entry = self._read_entry(run, path, FileCategory.SESSION, cached=cached)
            if entry is None:
                continue
            entries.append(entry)
            if raw_path in modified_paths:
                run.modified.setdefault(path, None)
        self._admit(run, FileCategory.SESSION, entries)

    def _process_git(self, run: _BundleRun) -> None:
        entries: list[FileEntry] = []
        seen: set[str] = set()
        for raw_path in self._git_source.changed_files(run.root):
            path = self._screen(run, raw_path, FileCategory.GIT)
            if path is None or path in seen:
                continue
            seen.add(path)
            entry = self._read_entry(run, path, FileCategory.GIT)
            if entry is None:
                continue
            entries.append(entry)
            run.modified.setdefault(path, None)
        self._admit(run, FileCategory.GIT, entries)

    def _process_discovered(
        self,
        run: _BundleRun,
        category: FileCategory,
        paths: Iterable[str],
        *,
        smallest_first: bool,
    ) -> None:
        entries: list[FileEntry] = []
        seen: set[str] = set()
        for raw_path in paths:
            path = self._screen(run, raw_path, category)
            if path is None or path in seen:
                continue
            seen.add(path)
            entry = self._read_entry(run, path, category)
            if entry is not None:
                entries.append(entry)
        if smallest_first:
            entries.sort(key=lambda entry: entry.token_estimate)
        self._admit(run, category, entries)

    def _screen(
        self,
        run: _BundleRun,
        raw_path: str,
        category: FileCategory,
        *,
        allow_missing: bool = False,
    ) -> str | None:
        """Return the canonical path of a candidate, or ``None`` if it must not be read."""

        requested = raw_path if os.path.isabs(raw_path) else os.path.join(run.root, raw_path)
        requested = os.path.normpath(requested)
        if is_sensitive_path(requested):
            run.omitted.append(_sensitive(requested, category))
            return None

        try:
            path = self._fs.realpath(requested)
        except OSError:
            if not allow_missing:
                return None
            path = requested

        if path != requested and is_sensitive_path(path):
            run.omitted.append(_sensitive(requested, category))
            return None
        if run.allocator.is_admitted(path):
            return None
        return path

    def _read_entry(
        self,
        run: _BundleRun,
        path: str,
        category: FileCategory,
        *,
        cached: str | None = None,
    ) -> FileEntry | None:
        content = cached if cached is not None else read_text_or_none(self._fs, path)
        if content is None:
            return None
        redaction = redact_secrets(content)
        run.redactions[path] = redaction
        return FileEntry(
            path=path,
            content=redaction.content,
            category=category,
            token_estimate=estimate_tokens(redaction.content),
        )

    def _admit(
        self,
        run: _BundleRun,
        category: FileCategory,
        entries: Sequence[FileEntry],
        *,
        skip_bounds_check: bool = False,
    ) -> None:
        if not entries:
            run.allocator.skip(category)
            return
        admission = run.allocator.admit(category, entries, skip_bounds_check=skip_bounds_check)
        run.files.extend(admission.admitted)
        run.omitted.extend(admission.omitted)

    def _finish(
        self, run: _BundleRun, conversation: str, conversation_tokens: int
    ) -> ContextBundle:
        total_redactions = 0
        redacted_types: set[str] = set()
        for entry in run.files:
            redaction = run.redactions.get(entry.path)
            if redaction is None:
                continue
            total_redactions += redaction.redaction_count
            redacted_types.update(redaction.redacted_types)

        categories = {record.category: record.used_tokens for record in run.allocator.history}
        return ContextBundle(
            conversation_context=conversation,
            files=tuple(run.files),
            omitted_files=tuple(run.omitted),
            total_tokens=conversation_tokens + sum(entry.token_estimate for entry in run.files),
            categories=categories,
            redaction_stats=RedactionStats(
                total_count=total_redactions, types=tuple(sorted(redacted_types))
            ),
            budget_warnings=run.allocator.budget_warnings(),
        )


def bundle_context(
    options: BundleOptions,
    *,
    session_source: SessionSource | None = None,
    git_source: GitSource | None = None,
    test_finder: RelatedFileFinder | None = None,
    type_finder: RelatedFileFinder | None = None,
    fs: FileSystem | None = None,
    logger: Any | None = None,
) -> ContextBundle:
    """Run one bundling pass with a freshly constructed ``ContextBundler``."""

    bundler = ContextBundler(
        session_source=session_source,
        git_source=git_source,
        test_finder=test_finder,
        type_finder=type_finder,
        fs=fs,
        logger=logger,
    )
    return bundler.bundle(options)


def _sensitive(path: str, category: FileCategory) -> OmittedFile:
    return OmittedFile(
        path=path,
        category=category,
        token_estimate=0,
        reason=OmitReason.SENSITIVE_PATH,
    )


__all__ = [
    "BundleInputError",
    "BundleOptions",
    "ContextBundler",
    "bundle_context",
]
