"""Database models."""

from .tag import Tag, TagParentage
from .file import File, FileTag
from .folder import ManagedFolder

__all__ = ["Tag", "TagParentage", "File", "FileTag", "ManagedFolder"]
