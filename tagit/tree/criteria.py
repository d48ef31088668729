"""Search criteria derived from the selection state of a tag tree."""

import dataclasses
from typing import FrozenSet, List, Optional, Set, Tuple

from ..schemas.file import FileType
from ..schemas.search import SortMethod
from .tag_node import TagNode


@dataclasses.dataclass(frozen=True)
class SearchCriteria:
    """What a file search should match, built once from the tree and never changed.

    Attributes:
        any_match:    True for "match any", False for "match all".
        excluding:    Whether excluded tags were collected.
        sort_method:  Result ordering.
        include_any:  Active tag ids ("match any").
        include_all:  Self-activated nodes; each one is a subtree the file
                      must land in ("match all").
        exclude_ids:  Tag ids that disqualify a file.
        file_types:   Restrict results to these types; None means all.
    """

    any_match: bool
    excluding: bool
    sort_method: SortMethod
    include_any: Tuple[int, ...] = ()
    include_all: Tuple[TagNode, ...] = ()
    exclude_ids: Tuple[int, ...] = ()
    file_types: Optional[FrozenSet[FileType]] = None

    @classmethod
    def from_tree(
        cls,
        root: TagNode,
        any_match: bool = True,
        excluding: bool = False,
        sort_method: SortMethod = SortMethod.NAME,
        file_types: Optional[Set[FileType]] = None,
    ) -> "SearchCriteria":
        include_any: List[int] = []
        include_all: List[TagNode] = []
        exclude_ids: List[int] = []

        # Unfetched subtrees hold no selection, so they are not walked.
        if not root.is_root():
            stack = [root]
        elif root.fetched_children:
            stack = list(reversed(root.get_children()))
        else:
            stack = []
        while stack:
            node = stack.pop()
            if excluding and node.is_excluded():
                exclude_ids.append(node.id)
            elif node.is_active():
                if any_match:
                    include_any.append(node.id)
                elif node.is_self_activated():
                    include_all.append(node)
            if node.fetched_children:
                stack.extend(reversed(node.get_children()))

        return cls(
            any_match=any_match,
            excluding=excluding,
            sort_method=sort_method,
            include_any=tuple(include_any),
            include_all=tuple(include_all),
            exclude_ids=tuple(exclude_ids),
            file_types=frozenset(file_types) if file_types is not None else None,
        )

    def is_empty(self) -> bool:
        """No include criteria at all; such a search matches no files."""
        return not self.include_any and not self.include_all

    def subtree_id_sets(self) -> List[Set[int]]:
        """One id set per "match all" dimension: the node and its descendants."""
        return [set(node.subtree_ids()) for node in self.include_all]
