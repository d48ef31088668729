"""File schemas and file type detection."""

import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .tag import check_name_characters

# Text files are matched on the whole name (Office lock files start with "~$").
_TEXT_PATTERN = re.compile(r"^(?!~\$).+\.(txt|docx)$")
_IMAGE_EXTENSION = re.compile(r"^\.(jpe?g|png)$")
_VIDEO_EXTENSION = re.compile(r"^\.(mp[34])$")


class FileType(str, Enum):
    """Category of a managed file, derived from its name."""
    TEXT = "Text"
    IMAGE = "Image"
    VIDEO = "Video"
    UNSUPPORTED = "N/A"


def get_extension(file_name: str) -> Optional[str]:
    """Return the lowercase extension including the dot, or None."""
    dot_index = file_name.rfind('.')
    if dot_index == -1:
        return None
    return file_name[dot_index:].lower()


def file_type_of(file_name: Optional[str]) -> FileType:
    if not file_name:
        return FileType.UNSUPPORTED
    name = file_name.lower()
    if _TEXT_PATTERN.match(name):
        return FileType.TEXT
    extension = get_extension(name)
    if extension:
        if _IMAGE_EXTENSION.match(extension):
            return FileType.IMAGE
        if _VIDEO_EXTENSION.match(extension):
            return FileType.VIDEO
    return FileType.UNSUPPORTED


def is_supported(file_name: str) -> bool:
    return file_type_of(file_name) != FileType.UNSUPPORTED


class FileName(BaseModel):
    """A validated file name: allowed characters and a supported extension."""
    name: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = check_name_characters(v, "File")
        if not is_supported(v):
            raise ValueError("Unsupported file type")
        return v


class FileImport(FileName):
    """Record of a newly imported file."""
    created: Optional[int] = Field(default=None, description="Creation time, epoch seconds; None = now")
    tag_ids: List[int] = Field(min_length=1)


class FileRecord(BaseModel):
    """A file row as presented to callers."""
    id: int
    name: str
    created: int
    file_type: FileType
