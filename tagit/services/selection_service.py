"""Selected-tag bookkeeping that survives tags moving or disappearing.

A SelectionTracker remembers which tags the user checked for one search
facet (include or exclude) and tells its owner about every change through
``on_toggle``. When a checked tag is detached from the tree, the tracker
cannot know yet whether it moved or was deleted. It parks the tag id and
the path it was detached from, and ``reconcile()`` later resolves them: a
tag that still exists is found again through its stored lineage and
re-selected in its new place; one that is gone is reported through
ReconciliationError so the owner can rebuild from scratch.
"""

import logging
from collections import deque
from typing import Callable, Deque, Dict, Iterable, List, Optional, Sequence, Tuple

from ..exceptions import ReconciliationError, TagNotFoundError
from ..tree.events import ChangeKind, ChildrenChanged
from ..tree.tag_node import TagNode

# (node, checked, recovered): ``recovered`` marks transitions emitted while
# relocating a moved tag rather than by a user toggle.
ToggleCallback = Callable[[TagNode, bool, bool], None]
Path = Tuple[str, ...]

logger = logging.getLogger(__name__)


class SelectionTracker:
    """Checked tags of one facet, keyed by tag id."""

    def __init__(
        self,
        root: TagNode,
        store,
        on_toggle: ToggleCallback,
        on_reset: Optional[Callable[[], None]] = None,
        name: str = "selection",
    ):
        self.root = root
        self.store = store
        self.name = name
        self._on_toggle = on_toggle
        self._on_reset = on_reset

        self._selected: Dict[int, TagNode] = {}
        self._pending_ids: Deque[int] = deque()
        self._detached: List[Path] = []

        root.subscribe(self._on_children_changed)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def selected(self) -> List[TagNode]:
        return list(self._selected.values())

    @property
    def pending_ids(self) -> List[int]:
        return list(self._pending_ids)

    def is_selected(self, node: TagNode) -> bool:
        return node.id in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    # ------------------------------------------------------------------
    # User toggles
    # ------------------------------------------------------------------

    def select(self, node: TagNode) -> bool:
        if node.is_root() or not node.is_persisted():
            return False
        if node.id in self._selected:
            return False
        self._selected[node.id] = node
        self._on_toggle(node, True, False)
        return True

    def deselect(self, node: TagNode) -> bool:
        current = self._selected.pop(node.id, None)
        if current is None:
            return False
        self._on_toggle(current, False, False)
        return True

    def toggle(self, node: TagNode) -> bool:
        """Flip ``node``'s checked state and return the new state."""
        if self.is_selected(node):
            self.deselect(node)
            return False
        return self.select(node)

    def select_id(self, tag_id: int) -> TagNode:
        node = self.root.locate(tag_id)
        if node is None:
            raise TagNotFoundError(tag_id)
        self.select(node)
        return node

    def clear(self) -> None:
        for node in list(self._selected.values()):
            self.deselect(node)

    # ------------------------------------------------------------------
    # Structural changes
    # ------------------------------------------------------------------

    def _on_children_changed(self, event: ChildrenChanged) -> None:
        if event.kind != ChangeKind.REMOVED:
            return

        child = event.child
        lost = [
            node for node in self._selected.values()
            if node is child or child.is_ancestor_of(node)
        ]
        if not lost:
            return

        # The detached subtree may already hang below its new parent.
        base = event.parent.path_names()
        depth = len(child.path_names()) - 1
        for node in lost:
            del self._selected[node.id]
            self._pending_ids.append(node.id)
            self._detached.append(base + node.path_names()[depth:])

        logger.debug(
            "Selected tags detached",
            extra={"selection": self.name, "tag_ids": [n.id for n in lost]},
        )

    def reconcile(self) -> None:
        """Resolve every detachment recorded since the last call.

        Raises ReconciliationError listing the ids that no longer exist.
        """
        removed, self._detached = self._detached, []
        self.process_delta((), removed)

    def process_delta(self, added_paths: Iterable[Sequence[str]], removed_paths: Iterable[Sequence[str]]) -> None:
        """Apply a view's added/removed tag paths to the selection.

        A removed path whose last name reappears among the added paths is a
        re-listing, not a removal, and is skipped. A removed path that still
        resolves to a selected tag deselects it. Any other removal consumes
        the oldest parked id and relocates that tag through its lineage.
        """
        added_names = {path[-1].lower() for path in added_paths if path}
        unresolved: List[int] = []

        for path in removed_paths:
            if not path or path[-1].lower() in added_names:
                continue

            node = self.root.find_by_path(path)
            if node is not None and self.is_selected(node):
                self.deselect(node)
                continue

            if not self._pending_ids:
                continue
            tag_id = self._pending_ids.popleft()
            if not self._recover(tag_id):
                unresolved.append(tag_id)

        if unresolved:
            logger.warning(
                "Selected tags could not be relocated",
                extra={"selection": self.name, "tag_ids": unresolved},
            )
            raise ReconciliationError(unresolved)

    def _recover(self, tag_id: int) -> bool:
        lineage = self.store.fetch_tag_lineage(tag_id)
        node = self.root.find_node(lineage) if lineage else None
        if node is None:
            return False

        # The old position is dropped first so counters stay balanced.
        self._on_toggle(node, False, True)
        self._selected[node.id] = node
        self._on_toggle(node, True, True)
        logger.info(
            "Relocated selected tag",
            extra={"selection": self.name, "tag_id": tag_id, "path": node.tag_path},
        )
        return True

    def rebuild(self, checked: Optional[Iterable[TagNode]] = None) -> None:
        """Start over from ``checked``, or from every selected tag still reachable."""
        if checked is None:
            candidates = list(self._selected) + list(self._pending_ids)
            nodes = []
            for tag_id in dict.fromkeys(candidates):
                node = self.root.locate(tag_id)
                if node is not None:
                    nodes.append(node)
        else:
            nodes = list(checked)

        self._selected.clear()
        self._pending_ids.clear()
        self._detached = []
        if self._on_reset is not None:
            self._on_reset()
        for node in nodes:
            self.select(node)

        logger.info("Rebuilt selection", extra={"selection": self.name, "selected": len(self._selected)})
