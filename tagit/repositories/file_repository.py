"""Repository for file and file-tag database operations.

Owns all file query logic including the tag search of ``search()``.
File names are matched case-insensitively everywhere.
"""

import time
from typing import Iterable, List, Optional, Sequence, Set

from sqlalchemy import func, select

from ..exceptions import FileRecordNotFoundError
from ..models import File, FileTag
from ..schemas.search import SortMethod
from .base import BaseRepository


class FileRepository(BaseRepository[File]):
    """Repository for file CRUD operations and tag-based lookup."""

    model_class = File
    id_column = "name"
    not_found_error = FileRecordNotFoundError

    def _match(self, entity_id: str):
        return func.lower(File.name) == entity_id.lower()

    # --- Files ---

    def create(self, name: str, created: Optional[int], tag_ids: Iterable[int]) -> File:
        """Insert a file and its tag links. ``created=None`` means now."""
        if created is None:
            created = int(time.time())
        db_file = File(name=name, created=created)
        self.db.add(db_file)
        self.db.flush()
        for tag_id in dict.fromkeys(tag_ids):
            self.db.add(FileTag(file_id=db_file.id, tag_id=tag_id))
        self.db.flush()
        self.db.refresh(db_file)
        return db_file

    def exists(self, name: str) -> bool:
        return self.get_by_id_optional(name) is not None

    def get_all(self) -> List[File]:
        return self.db.query(File).order_by(func.lower(File.name), File.id).all()

    def rename(self, old_name: str, new_name: str) -> bool:
        db_file = self.get_by_id_optional(old_name)
        if not db_file:
            return False
        db_file.name = new_name
        self.db.flush()
        return True

    def delete(self, name: str) -> bool:
        """Delete a file row. Its tag links go with it (ON DELETE CASCADE)."""
        db_file = self.get_by_id_optional(name)
        if not db_file:
            return False
        self.db.query(File).filter(File.id == db_file.id).delete(synchronize_session=False)
        return True

    # --- File tags ---

    def tag_ids_of(self, name: str) -> List[int]:
        db_file = self.get_by_id(name)
        rows = (
            self.db.query(FileTag.tag_id)
            .filter(FileTag.file_id == db_file.id)
            .order_by(FileTag.tag_id)
            .all()
        )
        return [tag_id for (tag_id,) in rows]

    def add_tag(self, name: str, tag_id: int) -> bool:
        """Link a file to a tag. Idempotent; False if the file is missing."""
        db_file = self.get_by_id_optional(name)
        if not db_file:
            return False
        existing = (
            self.db.query(FileTag)
            .filter(FileTag.file_id == db_file.id, FileTag.tag_id == tag_id)
            .first()
        )
        if not existing:
            self.db.add(FileTag(file_id=db_file.id, tag_id=tag_id))
            self.db.flush()
        return True

    def remove_tag(self, name: str, tag_id: int) -> bool:
        db_file = self.get_by_id_optional(name)
        if not db_file:
            return False
        deleted = (
            self.db.query(FileTag)
            .filter(FileTag.file_id == db_file.id, FileTag.tag_id == tag_id)
            .delete(synchronize_session=False)
        )
        return deleted > 0

    def tagged_with(self, tag_id: int) -> List[str]:
        rows = (
            self.db.query(File.name)
            .join(FileTag, FileTag.file_id == File.id)
            .filter(FileTag.tag_id == tag_id)
            .order_by(func.lower(File.name))
            .all()
        )
        return [name for (name,) in rows]

    def uniquely_tagged_with(self, tag_id: int) -> List[str]:
        """Files whose only tag is ``tag_id``."""
        tagged = select(FileTag.file_id).where(FileTag.tag_id == tag_id)
        rows = (
            self.db.query(File.name)
            .join(FileTag, FileTag.file_id == File.id)
            .filter(File.id.in_(tagged))
            .group_by(File.id, File.name)
            .having(func.count(FileTag.tag_id) == 1)
            .order_by(func.lower(File.name))
            .all()
        )
        return [name for (name,) in rows]

    # --- Search ---

    def search(
        self,
        any_match: bool,
        include_any: Sequence[int],
        include_all: Sequence[Set[int]],
        exclude_ids: Sequence[int],
        sort_method: SortMethod,
    ) -> List[str]:
        """Names of files matching the tag criteria.

        any_match:    a file needs one link into ``include_any``.
        otherwise:    a file needs one link into *each* set of ``include_all``.
        exclude_ids:  any link into these disqualifies a file.

        Every condition is an IN-subquery on files, so a file row is never
        repeated however many of its tags match.
        """
        query = self.db.query(File.name)

        if exclude_ids:
            excluded = select(FileTag.file_id).where(FileTag.tag_id.in_(list(exclude_ids)))
            query = query.filter(File.id.notin_(excluded))

        if any_match:
            matched = select(FileTag.file_id).where(FileTag.tag_id.in_(list(include_any)))
            query = query.filter(File.id.in_(matched))
        else:
            for subtree_ids in include_all:
                matched = select(FileTag.file_id).where(FileTag.tag_id.in_(sorted(subtree_ids)))
                query = query.filter(File.id.in_(matched))

        if sort_method == SortMethod.NAME:
            query = query.order_by(func.lower(File.name), File.id)
        elif sort_method == SortMethod.AGE:
            query = query.order_by(File.created, File.id)
        elif sort_method == SortMethod.IMPORT_ORDER:
            query = query.order_by(File.id)
        elif sort_method == SortMethod.RANDOM:
            query = query.order_by(func.random())

        return [name for (name,) in query.all()]
