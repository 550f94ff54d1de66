"""
review-context — package root

File: src/review_context/__init__.py
Last updated: 2026-10-19

Purpose
- Assemble a bounded, security-filtered bundle of source files for an external reviewer.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).

Key interfaces
- ``bundle_context`` / ``ContextBundler`` in ``review_context.synthesis_plane``.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
