"""
review-context — security boundary

File: src/review_context/security/__init__.py
Last updated: 2026-10-19

Purpose
- Keep sensitive and out-of-bounds files out of bundles and scrub secrets from the rest.

Functional requirements
- Must fail closed: a path that looks sensitive is never read.
"""

from review_context.security.path_sandbox import (
    BlockedPath,
    SandboxResult,
    classify,
    classify_many,
    is_sensitive_path,
)
from review_context.security.redaction import (
    RedactionResult,
    contains_secrets,
    placeholder_for,
    redact_secrets,
    secret_pattern_names,
)

__all__ = [
    "BlockedPath",
    "RedactionResult",
    "SandboxResult",
    "classify",
    "classify_many",
    "contains_secrets",
    "is_sensitive_path",
    "placeholder_for",
    "redact_secrets",
    "secret_pattern_names",
]
