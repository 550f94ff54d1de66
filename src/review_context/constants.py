"""Stable constants shared across the context assembly planes."""

from __future__ import annotations

from typing import Final

# Category names in strict priority order (first claim wins).
CATEGORY_ORDER: Final[tuple[str, ...]] = (
    "explicit",
    "session",
    "git",
    "dependency",
    "dependent",
    "test",
    "type",
)

# Fraction of the available token budget granted to each category.
BUDGET_ALLOCATION: Final[dict[str, float]] = {
    "explicit": 0.15,
    "session": 0.30,
    "git": 0.10,
    "dependency": 0.15,
    "dependent": 0.15,
    "test": 0.10,
    "type": 0.05,
}

DEFAULT_MAX_TOKENS: Final[int] = 100_000
CHARS_PER_TOKEN: Final[int] = 4

# Budget warning suggestion = ceil((ceiling + omitted + margin) / rounding) * rounding.
SUGGESTED_BUDGET_MARGIN: Final[int] = 5_000
SUGGESTED_BUDGET_ROUNDING: Final[int] = 10_000

# Directory expansion.
MAX_EXPAND_DEPTH: Final[int] = 10
EXPANSION_SKIPPED_NAMES: Final[frozenset[str]] = frozenset({"node_modules"})

# Import graph.
CODE_EXTENSIONS: Final[tuple[str, ...]] = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")
INDEX_EXCLUDED_DIRECTORIES: Final[frozenset[str]] = frozenset(
    {"node_modules", "dist", "build", ".git"}
)
SOURCE_ALIAS_PREFIX: Final[str] = "@/"
SOURCE_ALIAS_DIRECTORY: Final[str] = "src"

# Related-file discovery.
TEST_ROOT_DIRECTORIES: Final[tuple[str, ...]] = ("tests", "test", "__tests__")

__all__ = [
    "BUDGET_ALLOCATION",
    "CATEGORY_ORDER",
    "CHARS_PER_TOKEN",
    "CODE_EXTENSIONS",
    "DEFAULT_MAX_TOKENS",
    "EXPANSION_SKIPPED_NAMES",
    "INDEX_EXCLUDED_DIRECTORIES",
    "MAX_EXPAND_DEPTH",
    "SOURCE_ALIAS_DIRECTORY",
    "SOURCE_ALIAS_PREFIX",
    "SUGGESTED_BUDGET_MARGIN",
    "SUGGESTED_BUDGET_ROUNDING",
    "TEST_ROOT_DIRECTORIES",
]
