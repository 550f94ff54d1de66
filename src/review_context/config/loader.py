"""
review-context — bundler settings loader

File: src/review_context/config/loader.py
Last updated: 2026-10-19

Purpose
- Load effective bundler settings from defaults, a TOML file, env vars, and overrides.

What should be included in this file
- Precedence logic: overrides > env (REVIEW_CONTEXT_) > file > defaults.
- TOML loading via ``tomllib`` from the ``[context]`` table.
- Deterministic environment variable mapping and coercion.

Functional requirements
- Reject unknown keys and values of the wrong type with ``ConfigLoadError``.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Final, Literal

from review_context.constants import DEFAULT_MAX_TOKENS
from review_context.synthesis_plane.context_bundler import BundleOptions

DEFAULT_CONFIG_FILE: Final[str] = "review-context.toml"
CONFIG_TABLE: Final[str] = "context"
ENV_PREFIX: Final[str] = "REVIEW_CONTEXT_"

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})

_ValueKind = Literal["int", "bool"]


class ConfigLoadError(ValueError):
    """Raised when settings cannot be loaded or values cannot be coerced."""


@dataclass(frozen=True, slots=True)
class BundlerSettings:
    """Tunable defaults for bundling passes."""

    max_tokens: int = DEFAULT_MAX_TOKENS
    include_conversation: bool = True
    include_dependencies: bool = True
    include_dependents: bool = True
    include_tests: bool = True
    include_types: bool = True
    allow_external: bool = False

    def __post_init__(self) -> None:
        if self.max_tokens <= 0:
            raise ConfigLoadError("max_tokens must be > 0")

    def to_options(self, project_root: str, include_paths: Sequence[str] = ()) -> BundleOptions:
        return BundleOptions(
            project_root=project_root,
            include_paths=tuple(include_paths),
            allow_external=self.allow_external,
            token_ceiling=self.max_tokens,
            include_conversation=self.include_conversation,
            include_dependencies=self.include_dependencies,
            include_dependents=self.include_dependents,
            include_tests=self.include_tests,
            include_types=self.include_types,
        )

    def to_dict(self) -> dict[str, object]:
        return {item.name: getattr(self, item.name) for item in fields(self)}


# Annotations are strings under postponed evaluation: "int" or "bool".
_FIELD_KINDS: Final[dict[str, _ValueKind]] = {
    item.name: item.type for item in fields(BundlerSettings)  # type: ignore[misc]
}


def load_settings(
    config_path: str | Path | None = None,
    *,
    overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> BundlerSettings:
    """Load settings with deterministic precedence: overrides > env > file > defaults."""

    resolved_path = _resolve_config_path(config_path)
    env_map = dict(os.environ if environ is None else environ)

    values: dict[str, object] = {}
    file_table = _load_toml_table(resolved_path, required=config_path is not None)
    values.update(_validate_mapping(file_table, source=str(resolved_path)))
    values.update(_collect_env_overrides(env_map))
    values.update(_validate_mapping(dict(overrides or {}), source="overrides"))

    return replace(BundlerSettings(), **values)


def env_name_for(field_name: str) -> str:
    return ENV_PREFIX + field_name.upper()


def _resolve_config_path(config_path: str | Path | None) -> Path:
    if config_path is None:
        return (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()
    return Path(config_path).expanduser().resolve()


def _load_toml_table(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc

    table = parsed.get(CONFIG_TABLE, {})
    if not isinstance(table, dict):
        raise ConfigLoadError(f"[{CONFIG_TABLE}] must be a table: {path}")
    return table


def _validate_mapping(payload: Mapping[str, object], *, source: str) -> dict[str, object]:
    validated: dict[str, object] = {}
    for key in sorted(payload):
        kind = _FIELD_KINDS.get(key)
        if kind is None:
            raise ConfigLoadError(f"unknown setting {key!r} in {source}")
        value = payload[key]
        if kind == "bool" and not isinstance(value, bool):
            raise ConfigLoadError(f"{source}: {key} must be a boolean")
        if kind == "int" and (isinstance(value, bool) or not isinstance(value, int)):
            raise ConfigLoadError(f"{source}: {key} must be an integer")
        validated[key] = value
    return validated


def _collect_env_overrides(environ: Mapping[str, str]) -> dict[str, object]:
    overrides: dict[str, object] = {}
    for field_name in sorted(_FIELD_KINDS):
        env_name = env_name_for(field_name)
        raw = environ.get(env_name)
        if raw is None:
            continue
        overrides[field_name] = _coerce_env(raw, _FIELD_KINDS[field_name], env_name)
    return overrides


def _coerce_env(raw: str, value_type: _ValueKind, env_name: str) -> object:
    value = raw.strip()
    if value_type == "int":
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigLoadError(f"{env_name} must be an integer") from exc

    lowered = value.lower()
    if lowered in _BOOLEAN_TRUE:
        return True
    if lowered in _BOOLEAN_FALSE:
        return False
    raise ConfigLoadError(f"{env_name} must be a boolean (true/false/1/0/yes/no/on/off)")


__all__ = [
    "CONFIG_TABLE",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "BundlerSettings",
    "ConfigLoadError",
    "env_name_for",
    "load_settings",
]
