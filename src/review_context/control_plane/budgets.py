"""
Token budget allocation across prioritized context categories.

The allocator hands each category a share of the available tokens and lets unused
share flow forward:
- base budget per category = floor(available * weight)
- effective budget = base + half of the accumulated spillover (the final category
  receives all of it)
- after a category runs, its unused base plus the ungranted spillover carries on

Admission inside a category is greedy in caller order; a file that does not fit is
recorded and the next one is tried. Decisions are logged with ``structlog``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from review_context.constants import (
    BUDGET_ALLOCATION,
    CHARS_PER_TOKEN,
    SUGGESTED_BUDGET_MARGIN,
    SUGGESTED_BUDGET_ROUNDING,
)
from review_context.domain.models import (
    BudgetWarning,
    FileCategory,
    FileEntry,
    OmitReason,
    OmittedFile,
    WarningSeverity,
)
from review_context.utils.fs import is_within

if TYPE_CHECKING:
    from collections.abc import Iterable

_ORDERED_CATEGORIES: tuple[FileCategory, ...] = tuple(FileCategory)
_WARNING_SEVERITY: dict[FileCategory, WarningSeverity] = {
    FileCategory.EXPLICIT: WarningSeverity.HIGH,
    FileCategory.SESSION: WarningSeverity.MEDIUM,
}


class BudgetOrderError(RuntimeError):
    """Raised when categories are processed out of priority order or twice."""


def estimate_tokens(text: str) -> int:
    """Approximate token count: one token per four characters, rounded up."""

    return math.ceil(len(text) / CHARS_PER_TOKEN)


def compute_base_budgets(available_tokens: int) -> dict[FileCategory, int]:
    available = max(0, available_tokens)
    # Weights are whole percentages; integer math keeps the floor exact.
    return {
        category: available * round(BUDGET_ALLOCATION[category.value] * 100) // 100
        for category in _ORDERED_CATEGORIES
    }


def suggest_budget(token_ceiling: int, omitted_tokens: int) -> int:
    """Round ``ceiling + omitted + margin`` up to the next multiple of the rounding step."""

    raw = token_ceiling + omitted_tokens + SUGGESTED_BUDGET_MARGIN
    return math.ceil(raw / SUGGESTED_BUDGET_ROUNDING) * SUGGESTED_BUDGET_ROUNDING


@dataclass(frozen=True, slots=True)
class CategoryAdmission:
    """Outcome of processing one category."""

    category: FileCategory
    base_budget: int
    bonus_budget: int
    used_tokens: int
    spillover_after: int
    admitted: tuple[FileEntry, ...]
    omitted: tuple[OmittedFile, ...]
    skipped: bool = False

    @property
    def effective_budget(self) -> int:
        return self.base_budget + self.bonus_budget

    def to_dict(self) -> dict[str, object]:
        return {
            "category": self.category.value,
            "base_budget": self.base_budget,
            "bonus_budget": self.bonus_budget,
            "effective_budget": self.effective_budget,
            "used_tokens": self.used_tokens,
            "spillover_after": self.spillover_after,
            "admitted": [entry.path for entry in self.admitted],
            "omitted": [item.to_dict() for item in self.omitted],
            "skipped": self.skipped,
        }


class BudgetAllocator:
    """
    Sequential per-category budget accounting for one bundling pass.

    Categories must be handled exactly once each, in ``FileCategory`` order, through
    either ``admit`` or ``skip``. The allocator also owns the set of already admitted
    paths, so a file claimed by an earlier category is never charged again.
    """

    def __init__(
        self,
        token_ceiling: int,
        conversation_tokens: int = 0,
        *,
        project_root: str | None = None,
        logger: Any | None = None,
    ) -> None:
        if token_ceiling <= 0:
            raise ValueError("token_ceiling must be > 0")
        if conversation_tokens < 0:
            raise ValueError("conversation_tokens must be >= 0")

        self._token_ceiling = token_ceiling
        self._available = max(0, token_ceiling - conversation_tokens)
        self._project_root = project_root
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

        self._base_budgets = compute_base_budgets(self._available)
        self._spillover = 0
        self._position = 0
        self._admitted_paths: set[str] = set()
        self._history: list[CategoryAdmission] = []

    @property
    def token_ceiling(self) -> int:
        return self._token_ceiling

    @property
    def available_tokens(self) -> int:
        return self._available

    @property
    def base_budgets(self) -> dict[FileCategory, int]:
        return dict(self._base_budgets)

    @property
    def spillover(self) -> int:
        return self._spillover

    @property
    def history(self) -> tuple[CategoryAdmission, ...]:
        return tuple(self._history)

    @property
    def next_category(self) -> FileCategory | None:
        if self._position >= len(_ORDERED_CATEGORIES):
            return None
        return _ORDERED_CATEGORIES[self._position]

    def is_admitted(self, path: str) -> bool:
        return path in self._admitted_paths

    def effective_budget(self, category: FileCategory) -> int:
        """Budget ``category`` would receive if processed now."""

        return self._base_budgets[category] + self._bonus_for(category)

    def admit(
        self,
        category: FileCategory,
        entries: Iterable[FileEntry],
        *,
        skip_bounds_check: bool = False,
    ) -> CategoryAdmission:
        """Greedily admit ``entries`` (in the given order) under the category budget."""

        self._expect(category)
        base = self._base_budgets[category]
        bonus = self._bonus_for(category)
        budget = base + bonus

        used = 0
        admitted: list[FileEntry] = []
        omitted: list[OmittedFile] = []
        for entry in entries:
            if entry.path in self._admitted_paths:
                continue
            if (
                not skip_bounds_check
                and self._project_root is not None
                and not is_within(entry.path, self._project_root)
            ):
                omitted.append(_omit(entry, category, OmitReason.OUTSIDE_PROJECT))
                continue
            if used + entry.token_estimate > budget:
                omitted.append(_omit(entry, category, OmitReason.BUDGET_EXCEEDED))
                continue
            admitted.append(entry)
            self._admitted_paths.add(entry.path)
            used += entry.token_estimate

        return self._close(category, base, bonus, used, admitted, omitted, skipped=False)

    def skip(self, category: FileCategory) -> CategoryAdmission:
        """Mark ``category`` absent; its whole base budget flows forward."""

        self._expect(category)
        base = self._base_budgets[category]
        bonus = self._bonus_for(category)
        return self._close(category, base, bonus, 0, [], [], skipped=True)

    def budget_warnings(self) -> tuple[BudgetWarning, ...]:
        """Warnings for explicit/session categories that dropped files for budget."""

        warnings: list[BudgetWarning] = []
        for record in self._history:
            severity = _WARNING_SEVERITY.get(record.category)
            if severity is None:
                continue
            dropped = [
                item for item in record.omitted if item.reason is OmitReason.BUDGET_EXCEEDED
            ]
            if not dropped:
                continue
            omitted_tokens = sum(item.token_estimate for item in dropped)
            warnings.append(
                BudgetWarning(
                    severity=severity,
                    category=record.category,
                    omitted_count=len(dropped),
                    omitted_tokens=omitted_tokens,
                    suggested_budget=suggest_budget(self._token_ceiling, omitted_tokens),
                    message=(
                        f"{len(dropped)} {record.category.value} file(s) "
                        f"(~{omitted_tokens:,} tokens) will be omitted"
                    ),
                )
            )
        return tuple(warnings)

    def _bonus_for(self, category: FileCategory) -> int:
        if category is _ORDERED_CATEGORIES[-1]:
            return self._spillover
        return self._spillover // 2

    def _expect(self, category: FileCategory) -> None:
        expected = self.next_category
        if expected is None:
            raise BudgetOrderError(f"all categories already processed; got {category.value}")
        if category is not expected:
            raise BudgetOrderError(
                f"category {category.value} processed out of order; expected {expected.value}"
            )

    def _close(
        self,
        category: FileCategory,
        base: int,
        bonus: int,
        used: int,
        admitted: list[FileEntry],
        omitted: list[OmittedFile],
        *,
        skipped: bool,
    ) -> CategoryAdmission:
        unused = max(0, base - used)
        self._spillover = unused + (self._spillover - bonus)
        self._position += 1

        record = CategoryAdmission(
            category=category,
            base_budget=base,
            bonus_budget=bonus,
            used_tokens=used,
            spillover_after=self._spillover,
            admitted=tuple(admitted),
            omitted=tuple(omitted),
            skipped=skipped,
        )
        self._history.append(record)
        self._logger.info(
            "context_budget_category",
            category=category.value,
            base_budget=base,
            bonus_budget=bonus,
            used_tokens=used,
            admitted=len(admitted),
            omitted=len(omitted),
            spillover=self._spillover,
            skipped=skipped,
        )
        return record


def _omit(entry: FileEntry, category: FileCategory, reason: OmitReason) -> OmittedFile:
    return OmittedFile(
        path=entry.path,
        category=category,
        token_estimate=entry.token_estimate,
        reason=reason,
    )


__all__ = [
    "BudgetAllocator",
    "BudgetOrderError",
    "CategoryAdmission",
    "compute_base_budgets",
    "estimate_tokens",
    "suggest_budget",
]
