"""Integration with the project's version control."""

from review_context.integration_plane.git_changes import GitChangeSource

__all__ = ["GitChangeSource"]
