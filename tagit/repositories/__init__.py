"""Data access repositories."""

from .base import BaseRepository
from .tag_repository import TagRepository
from .file_repository import FileRepository
from .folder_repository import FolderRepository

__all__ = [
    "BaseRepository",
    "TagRepository",
    "FileRepository",
    "FolderRepository",
]
