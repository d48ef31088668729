"""Base repository with shared get-by-ID patterns.

Subclasses specify model_class, id_column, and not_found_error; the base
provides the common implementations.

Override _match() to change how an identifier is compared (e.g., the
case-insensitive file name lookup in FileRepository).
"""

from typing import Any, TypeVar, Generic, Optional, Type
from sqlalchemy.orm import Session, Query

from ..database import Base
from ..exceptions import TagitException

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., Tag)
        id_column:       Name of the identifying column (default "id")
        not_found_error: Exception class to raise from get_by_id
    """

    model_class: Type[ModelT]
    id_column: str = "id"
    not_found_error: Type[TagitException]

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self) -> Query:
        return self.db.query(self.model_class)

    def _match(self, entity_id: Any):
        col = getattr(self.model_class, self.id_column)
        return col == entity_id

    def get_by_id(self, entity_id: Any) -> ModelT:
        """Get entity by identifier. Raises not_found_error if missing."""
        entity = self._base_query().filter(self._match(entity_id)).first()
        if not entity:
            raise self.not_found_error(entity_id)
        return entity

    def get_by_id_optional(self, entity_id: Any) -> Optional[ModelT]:
        """Get entity by identifier, or None if not found."""
        return self._base_query().filter(self._match(entity_id)).first()
