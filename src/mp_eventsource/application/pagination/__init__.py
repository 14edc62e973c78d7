"""Application pagination – page requests and paginated results."""
from mp_eventsource.application.pagination.page_request import PageRequest, Sort, SortDirection
from mp_eventsource.application.pagination.result import (
    Page,
    PaginatedQueryResult,
    ResultRange,
    SearchResult,
)

__all__ = [
    "Page",
    "PageRequest",
    "PaginatedQueryResult",
    "ResultRange",
    "SearchResult",
    "Sort",
    "SortDirection",
]
