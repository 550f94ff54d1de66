"""
review-context — git working-tree change source

File: src/review_context/integration_plane/git_changes.py
Last updated: 2026-10-19

Purpose
- Report files with staged, unstaged, or untracked changes under a project root.

Functional requirements
- Paths are returned absolute, deduplicated, in staged/unstaged/untracked order.
- Names that are not valid UTF-8 are decoded with ``surrogateescape`` so they round-trip
  through ``os`` calls unchanged.
- A directory that is not a repository, or a missing ``git`` binary, yields no files.

Non-functional requirements
- Never prompts for credentials; never raises for git failures.
"""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

import structlog

if TYPE_CHECKING:
    from collections.abc import Sequence

_CHANGE_QUERIES: Final[tuple[tuple[str, tuple[str, ...]], ...]] = (
    ("staged", ("diff", "--cached", "--name-only", "--relative")),
    ("unstaged", ("diff", "--name-only", "--relative")),
    ("untracked", ("ls-files", "--others", "--exclude-standard")),
)


@dataclass(frozen=True, slots=True)
class CommandResult:
    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


class GitChangeSource:
    """List modified files of a working tree by shelling out to ``git``."""

    def __init__(self, *, git_binary: str = "git", logger: Any | None = None) -> None:
        self._git_binary = git_binary
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    def changed_files(self, project_root: str) -> list[str]:
        if not self.is_repository(project_root):
            self._logger.info("git_changes_unavailable", project_root=project_root)
            return []

        collected: dict[str, None] = {}
        for label, args in _CHANGE_QUERIES:
            result = self._run_git(args, cwd=project_root)
            if result is None or result.returncode != 0:
                self._logger.warning(
                    "git_changes_query_failed",
                    query=label,
                    returncode=None if result is None else result.returncode,
                )
                continue
            for line in result.stdout.splitlines():
                relative = line.strip()
                if relative:
                    collected.setdefault(os.path.normpath(os.path.join(project_root, relative)))
        return list(collected)

    def is_repository(self, project_root: str) -> bool:
        result = self._run_git(("rev-parse", "--is-inside-work-tree"), cwd=project_root)
        return result is not None and result.returncode == 0 and result.stdout.strip() == "true"

    def _run_git(self, args: Sequence[str], *, cwd: str) -> CommandResult | None:
        command = (self._git_binary, "-c", "core.quotepath=off", *args)
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        env.setdefault("GIT_CONFIG_NOSYSTEM", "1")
        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                env=env,
                encoding="utf-8",
                errors="surrogateescape",
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            self._logger.warning("git_invocation_failed", args=" ".join(args), error=str(exc))
            return None
        return CommandResult(
            command=command,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


__all__ = ["CommandResult", "GitChangeSource"]
