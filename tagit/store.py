"""SQL-backed persistent store for one managed folder.

Every public method opens its own short-lived session and commits before
returning; nothing spans two calls. Multi-step tag mutations are therefore
not atomic, and callers order their steps so that a partial failure leaves
the forest well formed.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .database import SessionLocal, init_db, make_engine, make_session_factory
from .exceptions import StoreError
from .repositories import FileRepository, TagRepository
from .schemas.file import FileRecord, file_type_of
from .tree.criteria import SearchCriteria

logger = logging.getLogger(__name__)


class SqlTagStore:
    """Tag forest and file catalogue persistence.

    Tag rows are returned as ``(name, id)`` pairs ordered by name, which is
    all TagNode needs to build its children.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory or SessionLocal

    @classmethod
    def from_url(cls, database_url: str, create_tables: bool = True) -> "SqlTagStore":
        engine = make_engine(database_url)
        if create_tables:
            init_db(engine)
        return cls(make_session_factory(engine))

    @classmethod
    def from_engine(cls, engine: Engine) -> "SqlTagStore":
        return cls(make_session_factory(engine))

    @contextmanager
    def session(self) -> Iterator[Session]:
        """One unit of work: commit on success, roll back and re-raise on failure."""
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Store operation failed: %s", e)
            raise StoreError("Store operation failed", original_error=e) from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Tag forest
    # ------------------------------------------------------------------

    def fetch_root_tags(self) -> List[Tuple[str, int]]:
        with self.session() as db:
            return TagRepository(db).root_tags()

    def fetch_child_tags(self, parent_id: int) -> List[Tuple[str, int]]:
        with self.session() as db:
            return TagRepository(db).child_tags(parent_id)

    def count_children(self, tag_id: int) -> int:
        with self.session() as db:
            return TagRepository(db).count_children(tag_id)

    def tag_exists(self, tag_id: int) -> bool:
        with self.session() as db:
            return TagRepository(db).get_by_id_optional(tag_id) is not None

    def insert_tag(self, name: str) -> int:
        with self.session() as db:
            tag = TagRepository(db).create(name)
            logger.debug("Inserted tag", extra={"tag_id": tag.id})
            return tag.id

    def rename_tag(self, tag_id: int, name: str) -> None:
        with self.session() as db:
            TagRepository(db).rename(tag_id, name)

    def delete_tag(self, tag_id: int) -> bool:
        with self.session() as db:
            return TagRepository(db).delete(tag_id)

    def insert_tag_parent_link(self, parent_id: int, child_id: int) -> None:
        with self.session() as db:
            TagRepository(db).create_link(parent_id, child_id)

    def update_tag_parent_link(self, child_id: int, new_parent_id: int) -> bool:
        with self.session() as db:
            return TagRepository(db).update_link(child_id, new_parent_id)

    def delete_tag_parent_link(self, child_id: int) -> bool:
        with self.session() as db:
            return TagRepository(db).delete_link(child_id)

    def tag_parent_link_exists(self, child_id: int) -> bool:
        with self.session() as db:
            return TagRepository(db).link_exists(child_id)

    def fetch_tag_lineage(self, tag_id: int) -> List[int]:
        """Ids from the root-level ancestor down to ``tag_id``; empty if it is gone."""
        with self.session() as db:
            repo = TagRepository(db)
            if repo.get_by_id_optional(tag_id) is None:
                return []
            return repo.lineage(tag_id)

    # ------------------------------------------------------------------
    # File tags
    # ------------------------------------------------------------------

    def files_tagged_with(self, tag_id: int) -> List[str]:
        with self.session() as db:
            return FileRepository(db).tagged_with(tag_id)

    def files_uniquely_tagged_with(self, tag_id: int) -> List[str]:
        with self.session() as db:
            return FileRepository(db).uniquely_tagged_with(tag_id)

    def fetch_file_tags(self, file_name: str) -> List[int]:
        with self.session() as db:
            return FileRepository(db).tag_ids_of(file_name)

    def add_file_tag(self, file_name: str, tag_id: int) -> bool:
        with self.session() as db:
            return FileRepository(db).add_tag(file_name, tag_id)

    def remove_file_tag(self, file_name: str, tag_id: int) -> bool:
        with self.session() as db:
            return FileRepository(db).remove_tag(file_name, tag_id)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def save_file(self, name: str, created: Optional[int], tag_ids: List[int]) -> FileRecord:
        with self.session() as db:
            db_file = FileRepository(db).create(name, created, tag_ids)
            return _to_record(db_file)

    def get_file(self, file_name: str) -> Optional[FileRecord]:
        with self.session() as db:
            db_file = FileRepository(db).get_by_id_optional(file_name)
            return _to_record(db_file) if db_file else None

    def file_exists(self, file_name: str) -> bool:
        with self.session() as db:
            return FileRepository(db).exists(file_name)

    def list_files(self) -> List[FileRecord]:
        with self.session() as db:
            return [_to_record(f) for f in FileRepository(db).get_all()]

    def rename_file(self, old_name: str, new_name: str) -> bool:
        with self.session() as db:
            return FileRepository(db).rename(old_name, new_name)

    def delete_file(self, file_name: str) -> bool:
        with self.session() as db:
            return FileRepository(db).delete(file_name)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def query_files(self, criteria: SearchCriteria) -> List[str]:
        """Distinct names of the files matching ``criteria``, in its sort order."""
        if criteria.is_empty():
            return []

        # Walking the subtrees may hit the store; do it before opening a session.
        subtree_sets = [] if criteria.any_match else criteria.subtree_id_sets()

        with self.session() as db:
            names = FileRepository(db).search(
                any_match=criteria.any_match,
                include_any=criteria.include_any,
                include_all=subtree_sets,
                exclude_ids=criteria.exclude_ids,
                sort_method=criteria.sort_method,
            )

        if criteria.file_types is not None:
            names = [n for n in names if file_type_of(n) in criteria.file_types]
        return names


def _to_record(db_file) -> FileRecord:
    return FileRecord(
        id=db_file.id,
        name=db_file.name,
        created=db_file.created,
        file_type=file_type_of(db_file.name),
    )
