"""File search over the current tag selection."""

import logging
from typing import List, Optional

from ..core.config import settings
from ..schemas.search import SearchRequest, SortMethod
from ..tree.criteria import SearchCriteria
from ..tree.tag_node import TagNode

logger = logging.getLogger(__name__)


class SearchService:
    """Builds SearchCriteria from the tree and runs them against the store."""

    def __init__(self, root: TagNode, store, default_sort_method: Optional[SortMethod] = None):
        self.root = root
        self.store = store
        self.default_sort_method = default_sort_method or SortMethod[settings.default_sort_method]

    def build_criteria(self, request: Optional[SearchRequest] = None) -> SearchCriteria:
        request = request or SearchRequest()
        return SearchCriteria.from_tree(
            self.root,
            any_match=request.any_match,
            excluding=request.excluding,
            sort_method=request.sort_method or self.default_sort_method,
            file_types=request.file_types,
        )

    def search(self, request: Optional[SearchRequest] = None) -> List[str]:
        """Names of the files matching the checked tags, in the requested order."""
        criteria = self.build_criteria(request)
        return self.run(criteria)

    def run(self, criteria: SearchCriteria) -> List[str]:
        names = self.store.query_files(criteria)
        logger.debug(
            "Search executed",
            extra={
                "any_match": criteria.any_match,
                "include": len(criteria.include_any) + len(criteria.include_all),
                "exclude": len(criteria.exclude_ids),
                "results": len(names),
            },
        )
        return names
