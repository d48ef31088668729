"""In-memory tag tree, its change events and the search criteria built from it."""

from .events import ChangeKind, ChildrenChanged, Listener
from .tag_node import ROOT_NAME, UNASSIGNED_ID, PATH_SEPARATOR, TagNode
from .criteria import SearchCriteria

__all__ = [
    "ChangeKind", "ChildrenChanged", "Listener",
    "ROOT_NAME", "UNASSIGNED_ID", "PATH_SEPARATOR", "TagNode",
    "SearchCriteria",
]
