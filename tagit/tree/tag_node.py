"""In-memory mirror of the persisted tag forest.

Every TagNode lazily loads its children from the store the first time they
are asked for, and carries the search-selection counters used to build
SearchCriteria:

    activation_weight         own toggles plus toggles inherited from ancestors
    parent_activation_weight  the inherited part of activation_weight
    exclusion_weight          same propagation, for the "exclude" facet

A subtree toggle and a node's own toggle are revoked independently, which is
why these are counters and not flags.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from ..prompts import MutationPrompts, OrphanChoice
from ..exceptions import ValidationError
from .events import ChangeKind, ChildrenChanged, Listener

ROOT_NAME = "root"
UNASSIGNED_ID = -1
PATH_SEPARATOR = "->"

logger = logging.getLogger(__name__)


class TagNode:
    """A tag in the tree, or the synthetic root above the root-level tags."""

    def __init__(
        self,
        parent: Optional["TagNode"],
        name: str,
        tag_id: int = UNASSIGNED_ID,
        store=None,
        prompts: Optional[MutationPrompts] = None,
    ):
        self._parent = parent
        self.name = name
        self._id = tag_id
        self._store = store if store is not None else parent._store
        if prompts is None:
            prompts = parent._prompts if parent is not None else MutationPrompts()
        self._prompts = prompts

        self._children: List["TagNode"] = []
        self._fetched_children = False
        self._listeners: List[Listener] = []

        self.activation_weight = 0
        self.parent_activation_weight = 0
        self.exclusion_weight = 0
        self.parent_exclusion_weight = 0

    @classmethod
    def create_root(cls, store, prompts: Optional[MutationPrompts] = None) -> "TagNode":
        return cls(None, ROOT_NAME, store=store, prompts=prompts)

    def __repr__(self) -> str:
        return f"TagNode(id={self._id}, name={self.name!r})"

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def id(self) -> int:
        return self._id

    def assign_id(self, tag_id: int) -> None:
        """Ids are assigned once, by the store."""
        if self._id == UNASSIGNED_ID:
            self._id = tag_id

    def is_persisted(self) -> bool:
        return self._id != UNASSIGNED_ID

    def __eq__(self, other) -> bool:
        if not isinstance(other, TagNode):
            return NotImplemented
        if self._id != UNASSIGNED_ID or other._id != UNASSIGNED_ID:
            return self._id == other._id
        return self.name == other.name

    def __hash__(self) -> int:
        if self._id != UNASSIGNED_ID:
            return hash(("tag", self._id))
        return hash(("name", self.name))

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    @property
    def parent(self) -> Optional["TagNode"]:
        return self._parent

    def is_root(self) -> bool:
        return self._parent is None

    @property
    def root(self) -> "TagNode":
        node = self
        while node._parent is not None:
            node = node._parent
        return node

    @property
    def fetched_children(self) -> bool:
        return self._fetched_children

    def get_children(self) -> Tuple["TagNode", ...]:
        """Children in name order, fetched from the store on first use."""
        if not self._fetched_children:
            self._fetch_children()
        return tuple(self._children)

    def _fetch_children(self) -> None:
        if self.is_root():
            rows = self._store.fetch_root_tags()
        else:
            rows = self._store.fetch_child_tags(self._id)

        children = []
        for name, tag_id in rows:
            child = TagNode(self, name, tag_id)
            # Late-fetched children still belong to any selected ancestor's subtree.
            child.activation_weight = child.parent_activation_weight = self.activation_weight
            child.exclusion_weight = child.parent_exclusion_weight = self.exclusion_weight
            children.append(child)

        # Only mark fetched once the store call succeeded.
        self._children = children
        self._fetched_children = True

    def invalidate_children(self) -> None:
        """Drop the cached children; the next access fetches them again.

        Counters held by the dropped nodes are lost, so selection state for
        this subtree has to be rebuilt by the caller.
        """
        self._children = []
        self._fetched_children = False

    def is_leaf(self) -> bool:
        if not self._fetched_children:
            return self._store.count_children(self._id) == 0
        return not self._children

    def has_child(self, name: str) -> bool:
        return self.get_child(name) is not None

    def get_child(self, name: str) -> Optional["TagNode"]:
        wanted = name.lower()
        for child in self.get_children():
            if child.name.lower() == wanted:
                return child
        return None

    def is_ancestor_of(self, other: "TagNode") -> bool:
        node = other._parent
        while node is not None:
            if node is self:
                return True
            node = node._parent
        return False

    @property
    def tag_path(self) -> Optional[str]:
        """``Animals->Dogs``; None for the root."""
        names = self.path_names()
        return PATH_SEPARATOR.join(names) if names else None

    def path_names(self) -> Tuple[str, ...]:
        names = []
        node = self
        while node._parent is not None:
            names.append(node.name)
            node = node._parent
        return tuple(reversed(names))

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        """Receive add/remove events for this node and all its descendants."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: ChildrenChanged) -> None:
        node = self
        while node is not None:
            for listener in list(node._listeners):
                listener(event)
            node = node._parent

    # ------------------------------------------------------------------
    # Adding and removing children
    # ------------------------------------------------------------------

    def _files_needing_retag(self) -> List[str]:
        """Files that must follow a new child because this leaf stops being one."""
        if self.is_root() or not self.is_leaf():
            return []
        return self._store.files_tagged_with(self._id)

    def add_child(self, candidate: "TagNode") -> bool:
        """Attach ``candidate`` below this node.

        If this node is a tagged leaf, the user must first agree to move its
        files onto ``candidate``; declining returns False and changes
        nothing. An unpersisted candidate is inserted into the store once
        the decision is in.
        """
        files = self._files_needing_retag()
        if files and not self._prompts.confirm_retag(self, candidate, files):
            logger.info(
                "Leaf promotion declined",
                extra={"tag_id": self._id, "child": candidate.name, "files": len(files)},
            )
            return False

        # Fetch before persisting so the new row is not loaded a second time.
        self.get_children()

        if not candidate.is_persisted():
            candidate.assign_id(self._store.insert_tag(candidate.name))
            if not self.is_root():
                self._store.insert_tag_parent_link(self._id, candidate.id)

        for file_name in files:
            self._store.remove_file_tag(file_name, self._id)
            self._store.add_file_tag(file_name, candidate.id)
        if files:
            logger.info(
                "Re-tagged files onto new child",
                extra={"tag_id": self._id, "child_id": candidate.id, "files": len(files)},
            )

        self._attach(candidate)
        return True

    def _attach(self, child: "TagNode") -> None:
        for existing in self._children:
            if existing is child:
                return

        # The child now inherits this node's selection instead of its old parent's.
        child._shift_inherited(
            self.activation_weight - child.parent_activation_weight,
            self.exclusion_weight - child.parent_exclusion_weight,
        )

        key = (child.name.lower(), child.id)
        index = len(self._children)
        for i, existing in enumerate(self._children):
            if (existing.name.lower(), existing.id) > key:
                index = i
                break
        self._children.insert(index, child)
        self._notify(ChildrenChanged(ChangeKind.ADDED, self, child))

    def remove_child(self, child: "TagNode") -> bool:
        for i, existing in enumerate(self._children):
            if existing is child:
                del self._children[i]
                self._notify(ChildrenChanged(ChangeKind.REMOVED, self, child))
                return True
        return False

    def rename(self, new_name: str) -> bool:
        """Rename in the store, then in memory. False for an unpersisted node."""
        if not self.is_persisted():
            logger.info("Rename skipped for unsaved tag", extra={"tag": self.name})
            return False
        self._store.rename_tag(self._id, new_name)
        self.name = new_name
        if self._parent is not None and self in self._parent._children:
            siblings = self._parent._children
            siblings.sort(key=lambda n: (n.name.lower(), n.id))
        return True

    def change_parent(self, new_parent: "TagNode") -> bool:
        """Move this tag below ``new_parent``.

        Attaches to the new parent before detaching from the old one, so a
        listener reacting to the removal already finds the node in its new
        place. Returns False if the user declined a leaf promotion.
        """
        if not new_parent.add_child(self):
            return False

        previous = self._parent
        self._parent = new_parent
        if new_parent.is_root():
            self._store.delete_tag_parent_link(self._id)
        elif self._store.tag_parent_link_exists(self._id):
            self._store.update_tag_parent_link(self._id, new_parent.id)
        else:
            self._store.insert_tag_parent_link(new_parent.id, self._id)

        if previous is not None:
            previous.remove_child(self)
        return True

    # ------------------------------------------------------------------
    # Search selection
    # ------------------------------------------------------------------

    def activate_node(self, on: bool) -> None:
        """Toggle this node as an include target, together with its subtree."""
        # Fetch first: freshly fetched children copy the current weight.
        children = self.get_children()
        self.activation_weight += 1 if on else -1
        for child in children:
            child.activate_child_node(on)

    def activate_child_node(self, on: bool) -> None:
        self.parent_activation_weight += 1 if on else -1
        self.activate_node(on)

    def is_active(self) -> bool:
        return self.activation_weight > 0

    def is_self_activated(self) -> bool:
        return self.activation_weight > self.parent_activation_weight

    def exclude_node(self, on: bool) -> None:
        """Toggle this node and its subtree as disqualifying search results."""
        children = self.get_children()
        self.exclusion_weight += 1 if on else -1
        for child in children:
            child.exclude_child_node(on)

    def exclude_child_node(self, on: bool) -> None:
        self.parent_exclusion_weight += 1 if on else -1
        self.exclude_node(on)

    def is_excluded(self) -> bool:
        return self.exclusion_weight > 0

    def _shift_inherited(self, activation_delta: int, exclusion_delta: int) -> None:
        if not activation_delta and not exclusion_delta:
            return
        self.parent_activation_weight += activation_delta
        self.activation_weight += activation_delta
        self.parent_exclusion_weight += exclusion_delta
        self.exclusion_weight += exclusion_delta
        for child in self._children:
            child._shift_inherited(activation_delta, exclusion_delta)

    def reset_activation(self) -> None:
        """Zero the activation counters of every fetched node in this subtree."""
        for node in self.walk_fetched():
            node.activation_weight = 0
            node.parent_activation_weight = 0

    def reset_exclusion(self) -> None:
        for node in self.walk_fetched():
            node.exclusion_weight = 0
            node.parent_exclusion_weight = 0

    def walk_fetched(self) -> Iterable["TagNode"]:
        """This node and every already-fetched descendant, depth first."""
        yield self
        for child in list(self._children):
            yield from child.walk_fetched()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_node(self, lineage: Sequence[int]) -> Optional["TagNode"]:
        """Follow a chain of ids down from this node; None if it breaks."""
        current = self
        for tag_id in lineage:
            match = None
            for child in current.get_children():
                if child.id == tag_id:
                    match = child
                    break
            if match is None:
                return None
            current = match
        return current

    def find_by_path(self, names: Sequence[str]) -> Optional["TagNode"]:
        """Follow a chain of names (case-insensitive) down from this node."""
        current = self
        for name in names:
            current = current.get_child(name)
            if current is None:
                return None
        return current

    def locate(self, tag_id: int) -> Optional["TagNode"]:
        """Find a persisted tag anywhere in the tree through its stored lineage."""
        lineage = self._store.fetch_tag_lineage(tag_id)
        if not lineage:
            return None
        return self.root.find_node(lineage)

    def subtree_ids(self) -> List[int]:
        """This tag's id followed by every descendant's id, depth first."""
        ids = [self._id] if self._id != UNASSIGNED_ID else []
        for child in self.get_children():
            ids.extend(child.subtree_ids())
        return ids

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete(self, _top: Optional["TagNode"] = None) -> bool:
        """Delete this tag and its subtree, children first and last-to-first.

        Stops at the first tag whose orphaned files the user refuses to
        resolve and returns False; tags deleted before that stay deleted.
        """
        top = _top or self
        for child in reversed(self.get_children()):
            if not child.delete(top):
                return False

        orphans = self._store.files_uniquely_tagged_with(self._id)
        if orphans and not self._resolve_orphans(orphans, top):
            logger.info(
                "Tag deletion cancelled",
                extra={"tag_id": self._id, "orphaned_files": len(orphans)},
            )
            return False

        self._store.delete_tag(self._id)
        logger.info("Deleted tag", extra={"tag_id": self._id, "tag": self.name})
        if self._parent is not None:
            self._parent.remove_child(self)
        return True

    def _resolve_orphans(self, orphans: List[str], top: "TagNode") -> bool:
        choice = self._prompts.resolve_orphans(self, orphans)

        if choice == OrphanChoice.DELETE_FILES:
            for file_name in orphans:
                self._store.delete_file(file_name)
            logger.info("Deleted orphaned files", extra={"tag_id": self._id, "files": len(orphans)})
            return True

        if choice == OrphanChoice.RETAG:
            replacement = self._prompts.select_replacement(self.root, self)
            if replacement is None:
                return False
            if (
                not replacement.is_persisted()
                or replacement is top
                or top.is_ancestor_of(replacement)
            ):
                raise ValidationError(
                    f"\"{replacement.name}\" cannot take over the files of \"{self.name}\"",
                    field="replacement",
                )
            # By now the only child of the replacement that can still be
            # in the deleted subtree is its top node.
            if any(child != top for child in replacement.get_children()):
                raise ValidationError(
                    f"\"{replacement.name}\" has child tags; files may only carry leaf tags",
                    field="replacement",
                )
            for file_name in orphans:
                self._store.remove_file_tag(file_name, self._id)
                self._store.add_file_tag(file_name, replacement.id)
            logger.info(
                "Re-tagged orphaned files",
                extra={"tag_id": self._id, "replacement_id": replacement.id, "files": len(orphans)},
            )
            return True

        return False
