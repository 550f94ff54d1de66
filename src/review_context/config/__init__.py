"""Bundler configuration."""

from review_context.config.loader import (
    BundlerSettings,
    ConfigLoadError,
    load_settings,
)

__all__ = ["BundlerSettings", "ConfigLoadError", "load_settings"]
