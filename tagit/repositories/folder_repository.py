"""Repository for the managed folder registry.

Folders are identified by name, compared case-insensitively.
"""

import time
from typing import List, Optional

from sqlalchemy import func

from ..exceptions import FolderNotFoundError
from ..models import ManagedFolder
from .base import BaseRepository


class FolderRepository(BaseRepository[ManagedFolder]):
    """Data access layer for managed folders."""

    model_class = ManagedFolder
    id_column = "name"
    not_found_error = FolderNotFoundError

    def _match(self, entity_id: str):
        return func.lower(ManagedFolder.name) == entity_id.lower()

    def get_all(self) -> List[ManagedFolder]:
        """Main folder first, then by name."""
        return self.db.query(ManagedFolder).order_by(
            ManagedFolder.is_main.desc(),
            func.lower(ManagedFolder.name),
        ).all()

    def get_main(self) -> Optional[ManagedFolder]:
        return self.db.query(ManagedFolder).filter(ManagedFolder.is_main.is_(True)).first()

    def count(self) -> int:
        return self.db.query(ManagedFolder).count()

    def clear_main(self) -> None:
        self.db.query(ManagedFolder).filter(ManagedFolder.is_main.is_(True)).update(
            {ManagedFolder.is_main: False}, synchronize_session="fetch"
        )

    def create(self, name: str, location: str, is_main: bool) -> ManagedFolder:
        folder = ManagedFolder(
            name=name,
            location=location,
            is_main=is_main,
            created=int(time.time()),
        )
        self.db.add(folder)
        self.db.flush()
        self.db.refresh(folder)
        return folder

    def update(
        self,
        folder: ManagedFolder,
        name: Optional[str] = None,
        location: Optional[str] = None,
        is_main: Optional[bool] = None,
    ) -> ManagedFolder:
        if name is not None:
            folder.name = name
        if location is not None:
            folder.location = location
        if is_main is not None:
            folder.is_main = is_main
        self.db.flush()
        return folder

    def delete(self, folder: ManagedFolder) -> None:
        self.db.delete(folder)
        self.db.flush()
