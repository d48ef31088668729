"""Catalogue of the files in a managed folder and their tags.

Every file carries at least one tag and only leaf tags; names are unique
regardless of case.
"""

import logging
from typing import Iterable, List, Optional

from ..exceptions import FileRecordNotFoundError, ValidationError
from ..schemas.file import FileImport, FileName, FileRecord
from ..tree.tag_node import TagNode
from .validation_utils import parse_input

logger = logging.getLogger(__name__)


class FileService:

    def __init__(self, root: TagNode, store):
        self.root = root
        self.store = store

    def import_file(self, name: str, tags: Iterable[TagNode], created: Optional[int] = None) -> FileRecord:
        """Record a new file tagged with ``tags``. ``created`` defaults to now."""
        tags = list(tags)
        self._check_tags(tags)
        data = parse_input(FileImport, name=name, created=created, tag_ids=[t.id for t in tags])
        if self.store.file_exists(data.name):
            raise ValidationError(f"A file named \"{data.name}\" already exists", field="name")

        record = self.store.save_file(data.name, data.created, data.tag_ids)
        logger.info("Imported file", extra={"file": record.name, "tag_ids": data.tag_ids})
        return record

    def rename_file(self, old_name: str, new_name: str) -> FileRecord:
        new_name = parse_input(FileName, name=new_name).name
        if not self.store.file_exists(old_name):
            raise FileRecordNotFoundError(old_name)
        if new_name.lower() != old_name.lower() and self.store.file_exists(new_name):
            raise ValidationError(f"A file named \"{new_name}\" already exists", field="name")

        self.store.rename_file(old_name, new_name)
        logger.info("Renamed file", extra={"file": old_name, "new_name": new_name})
        return self.store.get_file(new_name)

    def delete_file(self, name: str) -> None:
        if not self.store.delete_file(name):
            raise FileRecordNotFoundError(name)
        logger.info("Deleted file", extra={"file": name})

    def get_file(self, name: str) -> FileRecord:
        record = self.store.get_file(name)
        if record is None:
            raise FileRecordNotFoundError(name)
        return record

    def list_files(self) -> List[FileRecord]:
        return self.store.list_files()

    def get_file_tags(self, name: str) -> List[TagNode]:
        """The file's tags as nodes of this tree, found through their lineage."""
        nodes = []
        for tag_id in self.store.fetch_file_tags(name):
            node = self.root.locate(tag_id)
            if node is not None:
                nodes.append(node)
        return nodes

    def set_file_tags(self, name: str, tags: Iterable[TagNode]) -> None:
        """Replace the file's tags with ``tags``.

        New links are added before old ones are removed, so the file never
        ends up untagged halfway through.
        """
        tags = list(tags)
        if not tags:
            raise ValidationError("A file needs at least one tag", field="tags")
        self._check_tags(tags)

        current = set(self.store.fetch_file_tags(name))
        wanted = {t.id for t in tags}
        for tag_id in sorted(wanted - current):
            self.store.add_file_tag(name, tag_id)
        for tag_id in sorted(current - wanted):
            self.store.remove_file_tag(name, tag_id)

        logger.info("Updated file tags", extra={"file": name, "tag_ids": sorted(wanted)})

    @staticmethod
    def _check_tags(tags: List[TagNode]) -> None:
        for tag in tags:
            if tag.is_root() or not tag.is_persisted():
                raise ValidationError(f"Tag \"{tag.name}\" is not saved", field="tags")
            if not tag.is_leaf():
                raise ValidationError(
                    f"Tag \"{tag.name}\" has child tags; files may only carry leaf tags",
                    field="tags",
                )
