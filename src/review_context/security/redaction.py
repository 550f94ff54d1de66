"""
review-context — secret redaction for bundled file content

File: src/review_context/security/redaction.py
Last updated: 2026-10-19

Purpose
- Replace secret-shaped substrings in file content with typed placeholders before
  the content leaves the process.

Functional requirements
- Ordered named patterns, most specific first; each match becomes ``[REDACTED:<name>]``.
- Statistics describe matches in the original content, not the rewritten copy.
- Idempotent: redacting already-redacted output changes nothing.

Non-functional requirements
- Pure and deterministic; never raises for string input.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

_MAX_PASSES: Final[int] = 64


@dataclass(frozen=True, slots=True)
class _SecretRule:
    name: str
    pattern: re.Pattern[str]


_SECRET_RULES: Final[tuple[_SecretRule, ...]] = (
    _SecretRule(
        name="private_key",
        pattern=re.compile(
            r"-----BEGIN [A-Z]+ PRIVATE KEY-----[\s\S]+?-----END [A-Z]+ PRIVATE KEY-----"
        ),
    ),
    _SecretRule(
        name="jwt",
        pattern=re.compile(r"eyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"),
    ),
    _SecretRule(name="aws_key", pattern=re.compile(r"AKIA[0-9A-Z]{16}")),
    _SecretRule(name="github_token", pattern=re.compile(r"gh[pousr]_[A-Za-z0-9_]{36,}")),
    _SecretRule(name="openai_key", pattern=re.compile(r"sk-[A-Za-z0-9]{20,}")),
    _SecretRule(name="stripe_key", pattern=re.compile(r"sk_(?:live|test)_[A-Za-z0-9]{24,}")),
    _SecretRule(name="slack_token", pattern=re.compile(r"xox[baprs]-[A-Za-z0-9-]+")),
    _SecretRule(
        name="connection_string",
        pattern=re.compile(
            r"(?:mongodb|postgres|postgresql|mysql|redis|amqp)://[^\s'\"]+", re.IGNORECASE
        ),
    ),
    _SecretRule(
        name="basic_auth",
        pattern=re.compile(r"https?://[^:]+:[^@]+@[^\s'\"]+", re.IGNORECASE),
    ),
    _SecretRule(
        name="bearer_token",
        pattern=re.compile(r"['\"]Bearer\s+[A-Za-z0-9._-]{20,}['\"]", re.IGNORECASE),
    ),
    _SecretRule(
        name="hex_secret",
        pattern=re.compile(
            r"(?:secret|key|token|hash)\s*[:=]\s*['\"][a-fA-F0-9]{32,}['\"]", re.IGNORECASE
        ),
    ),
    _SecretRule(
        name="base64_secret",
        pattern=re.compile(
            r"(?:secret|key|token|password)\s*[:=]\s*['\"][A-Za-z0-9+/]{40,}={0,2}['\"]",
            re.IGNORECASE,
        ),
    ),
    _SecretRule(
        name="api_key",
        pattern=re.compile(r"(?:api[_-]?key|apikey)\s*[:=]\s*['\"][^'\"]{10,}['\"]", re.IGNORECASE),
    ),
    _SecretRule(
        name="generic_secret",
        pattern=re.compile(
            r"(?:secret|password|passwd|pwd)\s*[:=]\s*['\"][^'\"]{8,}['\"]", re.IGNORECASE
        ),
    ),
)


@dataclass(frozen=True, slots=True)
class RedactionResult:
    """Redacted content plus statistics about the original content."""

    content: str
    redaction_count: int
    redacted_types: frozenset[str]

    @property
    def was_redacted(self) -> bool:
        return self.redaction_count > 0


def placeholder_for(name: str) -> str:
    return f"[REDACTED:{name}]"


def secret_pattern_names() -> tuple[str, ...]:
    """Return the rule names in application order."""

    return tuple(rule.name for rule in _SECRET_RULES)


def redact_secrets(text: str) -> RedactionResult:
    """
    Redact secret-shaped substrings from ``text``.

    Counts come from matching each rule against the original ``text``. Replacement
    runs rule by rule over a working copy and is repeated until the copy stops
    changing, since a placeholder spliced in by a later rule can complete a shape
    that an earlier rule matches.
    """

    if not isinstance(text, str):
        raise TypeError(f"text must be a string, got {type(text).__name__}")
    if not text:
        return RedactionResult(content="", redaction_count=0, redacted_types=frozenset())

    total = 0
    matched: set[str] = set()
    for rule in _SECRET_RULES:
        hits = sum(1 for _ in rule.pattern.finditer(text))
        if hits:
            total += hits
            matched.add(rule.name)

    content = text
    for _ in range(_MAX_PASSES):
        rewritten = _apply_rules(content)
        if rewritten == content:
            break
        content = rewritten

    return RedactionResult(
        content=content, redaction_count=total, redacted_types=frozenset(matched)
    )


def contains_secrets(text: str) -> bool:
    """Return whether any rule matches ``text``."""

    if not isinstance(text, str):
        raise TypeError(f"text must be a string, got {type(text).__name__}")
    return any(rule.pattern.search(text) is not None for rule in _SECRET_RULES)


def _apply_rules(text: str) -> str:
    for rule in _SECRET_RULES:
        text = rule.pattern.sub(placeholder_for(rule.name), text)
    return text


__all__ = [
    "RedactionResult",
    "contains_secrets",
    "placeholder_for",
    "redact_secrets",
    "secret_pattern_names",
]
