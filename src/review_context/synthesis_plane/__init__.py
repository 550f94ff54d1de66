"""
review-context — synthesis plane

File: src/review_context/synthesis_plane/__init__.py
Last updated: 2026-10-19

Purpose
- Orchestrate candidate discovery, security filtering, and budgeting into a bundle.
"""

from review_context.synthesis_plane.collaborators import (
    GitSource,
    NullGitSource,
    RelatedFileFinder,
    SessionSnapshot,
    SessionSource,
    StaticSessionSource,
)
from review_context.synthesis_plane.context_bundler import (
    BundleInputError,
    BundleOptions,
    ContextBundler,
    bundle_context,
)

__all__ = [
    "BundleInputError",
    "BundleOptions",
    "ContextBundler",
    "GitSource",
    "NullGitSource",
    "RelatedFileFinder",
    "SessionSnapshot",
    "SessionSource",
    "StaticSessionSource",
    "bundle_context",
]
