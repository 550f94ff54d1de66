"""
review-context — control plane

File: src/review_context/control_plane/__init__.py
Last updated: 2026-10-19

Purpose
- Budget decisions for context assembly.
"""

from review_context.control_plane.budgets import (
    BudgetAllocator,
    BudgetOrderError,
    CategoryAdmission,
    compute_base_budgets,
    estimate_tokens,
    suggest_budget,
)

__all__ = [
    "BudgetAllocator",
    "BudgetOrderError",
    "CategoryAdmission",
    "compute_base_budgets",
    "estimate_tokens",
    "suggest_budget",
]
