"""gitstamp - Stamp builds with git describe, commit and dirty-state metadata."""

__version__ = "0.1.0"

from .core.collector import MetadataCollector, collect_git_metadata

__all__ = ["MetadataCollector", "collect_git_metadata"]
