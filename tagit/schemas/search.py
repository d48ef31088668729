"""Search schemas."""

from enum import Enum
from typing import Optional, Set

from pydantic import BaseModel

from .file import FileType


class SortMethod(str, Enum):
    """Result ordering; the value is the label shown to the user."""
    NAME = "Alphabetically"
    AGE = "Oldest to newest"
    IMPORT_ORDER = "Import order"
    RANDOM = "Random"


class SearchRequest(BaseModel):
    """The user's current search inputs, excluding the tree state itself."""
    any_match: bool = True
    excluding: bool = False
    sort_method: Optional[SortMethod] = None
    # None = every file type
    file_types: Optional[Set[FileType]] = None
