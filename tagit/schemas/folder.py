"""Managed folder schemas."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .tag import check_name_characters

# Each managed folder keeps its tags and file catalogue in this file
FOLDER_DATABASE_NAME = "database.db"


def _check_location(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Folder location cannot be empty")
    return v


class FolderCreate(BaseModel):
    """Schema for registering a managed folder."""
    name: str
    location: str = Field(description="Parent directory of the folder")
    main: bool = False

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return check_name_characters(v, "Folder")

    @field_validator('location')
    @classmethod
    def validate_location(cls, v: str) -> str:
        return _check_location(v)


class FolderUpdate(BaseModel):
    """Schema for changing a managed folder. Unset fields stay as they are."""
    name: Optional[str] = None
    location: Optional[str] = None
    main: Optional[bool] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return check_name_characters(v, "Folder")

    @field_validator('location')
    @classmethod
    def validate_location(cls, v: Optional[str]) -> Optional[str]:
        return _check_location(v)

    def is_empty(self) -> bool:
        return self.name is None and self.location is None and self.main is None


class FolderRecord(BaseModel):
    """A registered folder as presented to callers."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    location: str
    is_main: bool
    created: int

    @property
    def path(self) -> Path:
        return Path(self.location) / self.name

    @property
    def database_url(self) -> str:
        return f"sqlite:///{(self.path / FOLDER_DATABASE_NAME).as_posix()}"
