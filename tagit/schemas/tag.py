"""Tag schemas."""

from pydantic import BaseModel, field_validator
from typing import Optional, List

from ..core.config import settings


def check_name_characters(v: str, kind: str) -> str:
    """Strip and validate a tag or file name. Raises ValueError."""
    v = v.strip()
    if not v:
        raise ValueError(f"{kind} name cannot be empty")
    forbidden = [c for c in settings.forbidden_name_characters if c in v]
    if forbidden:
        raise ValueError(f"{kind} name cannot contain slashes or quotes")
    return v


class TagName(BaseModel):
    """A validated tag name (create or rename)."""
    name: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return check_name_characters(v, "Tag")


class TagTreeNode(BaseModel):
    """Snapshot of one tag and its already-fetched children."""
    id: int
    name: str
    path: Optional[str] = None
    active: bool = False
    self_activated: bool = False
    excluded: bool = False
    leaf: bool = True
    children: List['TagTreeNode'] = []
