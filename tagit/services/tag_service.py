"""Deep module for tag mutations: create, rename, reparent, delete.

Callers hand over TagNodes and names; validation, sibling uniqueness, the
confirmation flows and persistence ordering all happen here or in TagNode.
A declined confirmation surfaces as UserDeclinedError.
"""

import logging
from typing import List, Optional

from ..exceptions import UserDeclinedError, ValidationError
from ..schemas.tag import TagName, TagTreeNode
from ..tree.tag_node import TagNode
from .validation_utils import parse_input

logger = logging.getLogger(__name__)


class TagService:
    """Tag mutation operations behind a simple interface.

    Public methods:
        create_tag   -- new child of a tag or of the root
        rename_tag   -- False (not raised) for an unsaved tag
        reparent_tag -- move a tag and its subtree
        delete_tag   -- cascading delete with orphaned-file resolution
        snapshot     -- nested pydantic view of the fetched tree
    """

    def __init__(self, root: TagNode):
        self.root = root

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_tag(self, parent: TagNode, name: str) -> TagNode:
        """Create a tag named ``name`` below ``parent`` and return its node.

        If ``parent`` is a leaf carrying files, the user must agree to move
        those files onto the new tag first.
        """
        name = parse_input(TagName, name=name).name
        if not parent.is_root() and not parent.is_persisted():
            raise ValidationError(f"Parent tag \"{parent.name}\" is not saved", field="parent")
        self._ensure_free_name(parent, name)

        node = TagNode(parent, name)
        if not parent.add_child(node):
            raise UserDeclinedError("create tag", tag_name=name)

        logger.info(
            "Created tag",
            extra={"tag_id": node.id, "tag": name, "parent_id": parent.id},
        )
        return node

    def rename_tag(self, node: TagNode, name: str) -> bool:
        if node.is_root():
            raise ValidationError("The root cannot be renamed", field="tag")
        name = parse_input(TagName, name=name).name
        if node.parent is not None:
            self._ensure_free_name(node.parent, name, ignore=node)

        renamed = node.rename(name)
        if renamed:
            logger.info("Renamed tag", extra={"tag_id": node.id, "tag": name})
        return renamed

    def reparent_tag(self, node: TagNode, new_parent: TagNode) -> bool:
        """Move ``node`` with its subtree below ``new_parent``.

        Moving to the current parent is a successful no-op. Moving onto the
        tag itself or into its own subtree is rejected.
        """
        if node.is_root() or not node.is_persisted():
            raise ValidationError("Only saved tags can be moved", field="tag")
        if new_parent is node or node.is_ancestor_of(new_parent):
            raise ValidationError("Cannot move a tag into its own subtree", field="parent")
        if not new_parent.is_root() and not new_parent.is_persisted():
            raise ValidationError(f"Parent tag \"{new_parent.name}\" is not saved", field="parent")
        if node.parent is new_parent:
            return True
        self._ensure_free_name(new_parent, node.name)

        old_parent_id = node.parent.id if node.parent is not None else None
        if not node.change_parent(new_parent):
            raise UserDeclinedError("move tag", tag_name=node.name)

        logger.info(
            "Moved tag",
            extra={"tag_id": node.id, "old_parent_id": old_parent_id, "parent_id": new_parent.id},
        )
        return True

    def delete_tag(self, node: TagNode) -> None:
        """Delete ``node`` and its whole subtree.

        Raises UserDeclinedError if the user cancels at any tag; tags
        deleted before that point stay deleted.
        """
        if node.is_root():
            raise ValidationError("The root cannot be deleted", field="tag")
        if not node.is_persisted():
            raise ValidationError(f"Tag \"{node.name}\" is not saved", field="tag")

        if not node.delete():
            raise UserDeclinedError("delete tag", tag_name=node.name)

    def snapshot(self, node: Optional[TagNode] = None) -> List[TagTreeNode]:
        """Nested view of ``node``'s already-fetched children (default: the root's)."""
        node = node or self.root
        if not node.fetched_children:
            return []
        return [self._snapshot_node(child) for child in node.get_children()]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _snapshot_node(self, node: TagNode) -> TagTreeNode:
        return TagTreeNode(
            id=node.id,
            name=node.name,
            path=node.tag_path,
            active=node.is_active(),
            self_activated=node.is_self_activated(),
            excluded=node.is_excluded(),
            leaf=node.is_leaf(),
            children=self.snapshot(node),
        )

    @staticmethod
    def _ensure_free_name(parent: TagNode, name: str, ignore: Optional[TagNode] = None) -> None:
        existing = parent.get_child(name)
        if existing is not None and existing is not ignore:
            raise ValidationError(
                f"A tag named \"{existing.name}\" already exists here",
                field="name",
            )
