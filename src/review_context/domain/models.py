"""Frozen domain records produced by a context bundling pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

from review_context.constants import CATEGORY_ORDER

if TYPE_CHECKING:
    from collections.abc import Mapping


class FileCategory(StrEnum):
    """Why a file was considered; declaration order is claim priority."""

    EXPLICIT = "explicit"
    SESSION = "session"
    GIT = "git"
    DEPENDENCY = "dependency"
    DEPENDENT = "dependent"
    TEST = "test"
    TYPE = "type"

    @property
    def priority(self) -> int:
        return CATEGORY_ORDER.index(self.value)


class OmitReason(StrEnum):
    BUDGET_EXCEEDED = "budget_exceeded"
    OUTSIDE_PROJECT = "outside_project"
    SENSITIVE_PATH = "sensitive_path"
    OUTSIDE_PROJECT_REQUIRES_ALLOW = "outside_project_requires_allow"


class WarningSeverity(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True, slots=True)
class FileEntry:
    """A file admitted into the bundle, with already-redacted content."""

    path: str
    content: str
    category: FileCategory
    token_estimate: int

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("FileEntry.path must be non-empty")
        if self.token_estimate < 0:
            raise ValueError("FileEntry.token_estimate must be >= 0")

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "category": self.category.value,
            "token_estimate": self.token_estimate,
        }


@dataclass(frozen=True, slots=True)
class OmittedFile:
    """A candidate that was considered and rejected."""

    path: str
    category: FileCategory
    token_estimate: int
    reason: OmitReason

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "category": self.category.value,
            "token_estimate": self.token_estimate,
            "reason": self.reason.value,
        }


@dataclass(frozen=True, slots=True)
class BudgetWarning:
    """Advisory emitted when high-priority files were dropped for budget."""

    severity: WarningSeverity
    category: FileCategory
    omitted_count: int
    omitted_tokens: int
    suggested_budget: int
    message: str

    def to_dict(self) -> dict[str, object]:
        return {
            "severity": self.severity.value,
            "category": self.category.value,
            "omitted_count": self.omitted_count,
            "omitted_tokens": self.omitted_tokens,
            "suggested_budget": self.suggested_budget,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class RedactionStats:
    total_count: int = 0
    types: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {"total_count": self.total_count, "types": list(self.types)}


@dataclass(frozen=True, slots=True)
class ContextBundle:
    """
    Aggregate result of one bundling pass.

    A canonical path appears in ``files`` at most once. ``categories`` always carries
    every category, with 0 for categories that admitted nothing.
    """

    conversation_context: str
    files: tuple[FileEntry, ...]
    omitted_files: tuple[OmittedFile, ...]
    total_tokens: int
    categories: Mapping[FileCategory, int]
    redaction_stats: RedactionStats = field(default_factory=RedactionStats)
    budget_warnings: tuple[BudgetWarning, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "files", tuple(self.files))
        object.__setattr__(self, "omitted_files", tuple(self.omitted_files))
        object.__setattr__(self, "budget_warnings", tuple(self.budget_warnings))
        usage = {category: 0 for category in FileCategory}
        usage.update(self.categories)
        object.__setattr__(self, "categories", MappingProxyType(usage))

        seen: set[str] = set()
        for entry in self.files:
            if entry.path in seen:
                raise ValueError(f"duplicate bundle entry: {entry.path}")
            seen.add(entry.path)

    @property
    def file_paths(self) -> tuple[str, ...]:
        return tuple(entry.path for entry in self.files)

    def files_in(self, category: FileCategory) -> tuple[FileEntry, ...]:
        return tuple(entry for entry in self.files if entry.category is category)

    def omitted_for(self, reason: OmitReason) -> tuple[OmittedFile, ...]:
        return tuple(item for item in self.omitted_files if item.reason is reason)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable manifest (file contents excluded)."""

        return {
            "total_tokens": self.total_tokens,
            "categories": {category.value: tokens for category, tokens in self.categories.items()},
            "files": [entry.to_dict() for entry in self.files],
            "omitted_files": [item.to_dict() for item in self.omitted_files],
            "redaction_stats": self.redaction_stats.to_dict(),
            "budget_warnings": [warning.to_dict() for warning in self.budget_warnings],
        }


__all__ = [
    "BudgetWarning",
    "ContextBundle",
    "FileCategory",
    "FileEntry",
    "OmitReason",
    "OmittedFile",
    "RedactionStats",
    "WarningSeverity",
]
