"""Business logic services."""

from .tag_service import TagService
from .selection_service import SelectionTracker
from .search_service import SearchService
from .file_service import FileService
from .folder_service import FolderService

__all__ = ["TagService", "SelectionTracker", "SearchService", "FileService", "FolderService"]
