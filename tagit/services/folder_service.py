"""Registry of managed folders.

The registry has its own database, separate from the per-folder databases
that hold tags and files. Exactly one registered folder is the main folder
once any exist; it is the one opened when no folder is named.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..core.config import settings
from ..database import init_registry, make_engine, make_session_factory
from ..exceptions import StoreError, ValidationError
from ..repositories import FolderRepository
from ..schemas.folder import FolderCreate, FolderRecord, FolderUpdate
from .validation_utils import parse_input

logger = logging.getLogger(__name__)


class FolderService:
    """List, register, change and remove managed folders.

    Public methods:
        list_folders  -- main folder first, then by name
        get_folder    -- lookup by name, ignoring case
        main_folder   -- the main folder, or None for an empty registry
        create_folder -- the first folder registered becomes main
        update_folder -- name / location / main flag
        delete_folder -- registry row only; the main folder cannot go
        resolve       -- folder to open for a name, or the main folder
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @classmethod
    def from_url(cls, registry_url: str) -> "FolderService":
        engine = make_engine(registry_url)
        init_registry(engine)
        return cls(make_session_factory(engine))

    @classmethod
    def from_engine(cls, engine: Engine) -> "FolderService":
        init_registry(engine)
        return cls(make_session_factory(engine))

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Folder registry operation failed: %s", e)
            raise StoreError("Folder registry operation failed", original_error=e) from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_folders(self) -> List[FolderRecord]:
        with self.session() as db:
            return [FolderRecord.model_validate(f) for f in FolderRepository(db).get_all()]

    def get_folder(self, name: str) -> FolderRecord:
        with self.session() as db:
            return FolderRecord.model_validate(FolderRepository(db).get_by_id(name))

    def main_folder(self) -> Optional[FolderRecord]:
        with self.session() as db:
            folder = FolderRepository(db).get_main()
            return FolderRecord.model_validate(folder) if folder else None

    def resolve(self, name: Optional[str] = None) -> FolderRecord:
        """Folder to open: ``name`` if given, else the main folder.

        An empty registry first gets the default folder from settings.
        """
        if name is not None:
            return self.get_folder(name)
        folder = self.main_folder()
        if folder is None:
            folder = self.create_folder(settings.managed_folder, settings.folders_location, main=True)
        return folder

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_folder(self, name: str, location: str, main: bool = False) -> FolderRecord:
        data = parse_input(FolderCreate, name=name, location=location, main=main)
        with self.session() as db:
            repo = FolderRepository(db)
            self._ensure_free_name(repo, data.name)
            is_main = data.main or repo.count() == 0
            if is_main:
                repo.clear_main()
            folder = FolderRecord.model_validate(repo.create(data.name, data.location, is_main))

        logger.info(
            "Registered managed folder",
            extra={"folder_name": folder.name, "location": folder.location, "main": folder.is_main},
        )
        return folder

    def update_folder(
        self,
        name: str,
        new_name: Optional[str] = None,
        location: Optional[str] = None,
        main: Optional[bool] = None,
    ) -> FolderRecord:
        data = parse_input(FolderUpdate, name=new_name, location=location, main=main)
        if data.is_empty():
            raise ValidationError("Nothing to update")

        with self.session() as db:
            repo = FolderRepository(db)
            folder = repo.get_by_id(name)
            if data.name is not None and data.name.lower() != folder.name.lower():
                self._ensure_free_name(repo, data.name)
            if data.main is False and folder.is_main:
                raise ValidationError(
                    "Make another folder the main folder instead", field="main"
                )
            if data.main and not folder.is_main:
                repo.clear_main()
            updated = FolderRecord.model_validate(
                repo.update(folder, name=data.name, location=data.location, is_main=data.main)
            )

        logger.info(
            "Updated managed folder",
            extra={"folder_name": name, "new_name": data.name, "location": data.location, "main": data.main},
        )
        return updated

    def delete_folder(self, name: str) -> None:
        """Forget a folder. Its directory and database are left on disk."""
        with self.session() as db:
            repo = FolderRepository(db)
            folder = repo.get_by_id(name)
            if folder.is_main:
                raise ValidationError("The main folder cannot be deleted", field="name")
            repo.delete(folder)
        logger.info("Removed managed folder", extra={"folder_name": name})

    def _ensure_free_name(self, repo: FolderRepository, name: str) -> None:
        if repo.get_by_id_optional(name) is not None:
            raise ValidationError(f"A folder named \"{name}\" already exists", field="name")
