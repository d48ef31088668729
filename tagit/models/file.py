"""File and file-tag models."""

from sqlalchemy import Column, ForeignKey, Index, Integer, String
from ..database import Base


class File(Base):
    """A file in the managed folder. ``id`` order doubles as import order."""

    __tablename__ = "files"
    __table_args__ = (
        Index("ix_files_name", "name", unique=True),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)

    # Creation time in seconds since the epoch
    created = Column(Integer, nullable=False)


class FileTag(Base):
    """Many-to-many association between files and tags."""

    __tablename__ = "file_tags"
    __table_args__ = (
        Index("ix_file_tags_tag_id", "tag_id"),
    )

    file_id = Column(Integer, ForeignKey("files.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
