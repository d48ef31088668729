"""Pydantic schemas for input validation and snapshots."""

from .tag import TagName, TagTreeNode
from .file import FileType, FileName, FileImport, FileRecord, file_type_of, is_supported
from .folder import FolderCreate, FolderUpdate, FolderRecord
from .search import SortMethod, SearchRequest

__all__ = [
    "TagName", "TagTreeNode",
    "FileType", "FileName", "FileImport", "FileRecord", "file_type_of", "is_supported",
    "FolderCreate", "FolderUpdate", "FolderRecord",
    "SortMethod", "SearchRequest",
]
