"""Repository for tag and tag-parentage database operations."""

from typing import List, Optional, Tuple

from sqlalchemy import func, select

from ..exceptions import TagNotFoundError
from ..models import Tag, TagParentage
from .base import BaseRepository


class TagRepository(BaseRepository[Tag]):
    """Data access for the tag forest.

    Root-level tags are the ones with no tag_parentage row; every listing is
    ordered by name, case-insensitively, with the id as a tie-breaker.
    """

    model_class = Tag
    not_found_error = TagNotFoundError

    # --- Listing ---

    def root_tags(self) -> List[Tuple[str, int]]:
        children = select(TagParentage.child_id)
        rows = (
            self.db.query(Tag.name, Tag.id)
            .filter(Tag.id.notin_(children))
            .order_by(func.lower(Tag.name), Tag.id)
            .all()
        )
        return [(name, tag_id) for name, tag_id in rows]

    def child_tags(self, parent_id: int) -> List[Tuple[str, int]]:
        rows = (
            self.db.query(Tag.name, Tag.id)
            .join(TagParentage, TagParentage.child_id == Tag.id)
            .filter(TagParentage.parent_id == parent_id)
            .order_by(func.lower(Tag.name), Tag.id)
            .all()
        )
        return [(name, tag_id) for name, tag_id in rows]

    def count_children(self, tag_id: int) -> int:
        return (
            self.db.query(func.count(TagParentage.child_id))
            .filter(TagParentage.parent_id == tag_id)
            .scalar()
        ) or 0

    # --- Tags ---

    def create(self, name: str) -> Tag:
        tag = Tag(name=name)
        self.db.add(tag)
        self.db.flush()
        self.db.refresh(tag)
        return tag

    def rename(self, tag_id: int, name: str) -> Tag:
        tag = self.get_by_id(tag_id)
        tag.name = name
        self.db.flush()
        return tag

    def delete(self, tag_id: int) -> bool:
        """Delete a tag row. Parentage and file links go with it (ON DELETE CASCADE)."""
        deleted = (
            self.db.query(Tag)
            .filter(Tag.id == tag_id)
            .delete(synchronize_session=False)
        )
        return deleted > 0

    # --- Parentage ---

    def get_parent_id(self, child_id: int) -> Optional[int]:
        return (
            self.db.query(TagParentage.parent_id)
            .filter(TagParentage.child_id == child_id)
            .scalar()
        )

    def link_exists(self, child_id: int) -> bool:
        return self.get_parent_id(child_id) is not None

    def create_link(self, parent_id: int, child_id: int) -> TagParentage:
        link = TagParentage(parent_id=parent_id, child_id=child_id)
        self.db.add(link)
        self.db.flush()
        return link

    def update_link(self, child_id: int, new_parent_id: int) -> bool:
        updated = (
            self.db.query(TagParentage)
            .filter(TagParentage.child_id == child_id)
            .update({TagParentage.parent_id: new_parent_id}, synchronize_session=False)
        )
        return updated > 0

    def delete_link(self, child_id: int) -> bool:
        deleted = (
            self.db.query(TagParentage)
            .filter(TagParentage.child_id == child_id)
            .delete(synchronize_session=False)
        )
        return deleted > 0

    def lineage(self, tag_id: int) -> List[int]:
        """Ids from a root-level tag down to ``tag_id`` (inclusive)."""
        chain = [tag_id]
        seen = {tag_id}
        parent_id = self.get_parent_id(tag_id)
        while parent_id is not None and parent_id not in seen:
            chain.insert(0, parent_id)
            seen.add(parent_id)
            parent_id = self.get_parent_id(parent_id)
        return chain
