"""Tag and tag parentage models."""

from sqlalchemy import Column, ForeignKey, Index, Integer, String
from ..database import Base


class Tag(Base):
    """A node of the tag taxonomy. Root-level tags have no parentage row."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)


class TagParentage(Base):
    """Parent/child edge between two tags; a child has at most one row."""

    __tablename__ = "tag_parentage"
    __table_args__ = (
        Index("ix_tag_parentage_child_id", "child_id", unique=True),
    )

    parent_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    child_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
