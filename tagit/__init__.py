"""Tag taxonomy and search engine of a personal media tagger."""

from .library import Library
from .prompts import MutationPrompts, OrphanChoice
from .store import SqlTagStore
from .tree import SearchCriteria, TagNode

__all__ = ["Library", "MutationPrompts", "OrphanChoice", "SqlTagStore", "SearchCriteria", "TagNode"]
