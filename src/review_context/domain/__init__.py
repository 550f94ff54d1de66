"""Domain records for context bundles."""

from review_context.domain.models import (
    BudgetWarning,
    ContextBundle,
    FileCategory,
    FileEntry,
    OmitReason,
    OmittedFile,
    RedactionStats,
    WarningSeverity,
)

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
