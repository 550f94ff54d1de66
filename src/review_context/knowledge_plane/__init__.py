"""
review-context — knowledge plane

File: src/review_context/knowledge_plane/__init__.py
Last updated: 2026-10-19

Purpose
- Code relationships: import graph, dependents index, related tests and type files.
"""

from review_context.knowledge_plane.import_graph import (
    ImportIndex,
    build_import_index,
    extract_imports,
    get_dependencies,
    get_dependencies_for_files,
    get_dependents_for_files,
    get_dependents_from_index,
    resolve_import_path,
)
from review_context.knowledge_plane.related_files import (
    TestFileFinder,
    TypeFileFinder,
    is_type_file,
)

__all__ = [
    "ImportIndex",
    "TestFileFinder",
    "TypeFileFinder",
    "build_import_index",
    "extract_imports",
    "get_dependencies",
    "get_dependencies_for_files",
    "get_dependents_for_files",
    "get_dependents_from_index",
    "is_type_file",
    "resolve_import_path",
]
