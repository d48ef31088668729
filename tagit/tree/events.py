"""Structural change notifications emitted by TagNode."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable


class ChangeKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class ChildrenChanged:
    """``child`` was added to or removed from ``parent``'s children.

    For a removal caused by a move, ``child.parent`` already points at the
    new parent while ``parent`` is the one it left.
    """
    kind: ChangeKind
    parent: Any
    child: Any


Listener = Callable[[ChildrenChanged], None]
