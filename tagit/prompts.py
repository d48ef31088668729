"""Decisions only the user can make during a tag mutation.

Mutations block on these calls and commit nothing until they return. The
base class declines everything; presentation layers subclass it and show
their own dialogs.
"""

from enum import Enum
from typing import List, Optional


class OrphanChoice(str, Enum):
    """What to do with files whose only tag is about to be deleted."""
    CANCEL = "cancel"
    DELETE_FILES = "delete_files"
    RETAG = "retag"


class MutationPrompts:
    """Confirmation collaborator consulted by TagNode mutations."""

    def confirm_retag(self, parent, child, files: List[str]) -> bool:
        """``parent`` is a tagged leaf about to get ``child``.

        Accepting moves every file in ``files`` from ``parent`` to ``child``,
        since all tags a file carries must be leaves.
        """
        return False

    def resolve_orphans(self, tag, files: List[str]) -> OrphanChoice:
        """``tag`` is the only tag of ``files`` and is about to be deleted."""
        return OrphanChoice.CANCEL

    def select_replacement(self, root, tag) -> Optional[object]:
        """Pick the TagNode that takes over ``tag``'s orphaned files, or None."""
        return None
