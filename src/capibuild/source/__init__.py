"""Source checkout discovery for capibuild."""

from .resolver import SourceTree, SourceTreeResolver, is_source_root

__all__ = ["SourceTree", "SourceTreeResolver", "is_source_root"]
