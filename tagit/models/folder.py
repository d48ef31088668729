"""Managed folder registry model.

Lives in the registry database, not in a folder's own database, so it is
declared on RegistryBase.
"""

from sqlalchemy import Boolean, Column, Index, Integer, String, Text
from ..database import RegistryBase


class ManagedFolder(RegistryBase):
    """A directory whose files and tags the tagger manages."""

    __tablename__ = "managed_folders"
    __table_args__ = (
        Index("ix_managed_folders_name", "name", unique=True),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)

    # Parent directory of the folder, not the folder itself
    location = Column(Text, nullable=False)

    # Exactly one folder is opened when no name is given
    is_main = Column(Boolean, nullable=False, default=False)

    # Creation time in seconds since the epoch
    created = Column(Integer, nullable=False)
