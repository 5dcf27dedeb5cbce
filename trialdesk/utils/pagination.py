"""
Client-side pagination.

Stopgap for endpoints that still return the whole result set. Filtering and
paging belong at the query boundary; callers log when they hit this path.
"""
from typing import List, Tuple, TypeVar

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


def paginate(items: List[T], page: int = None, page_size: int = None) -> Tuple[List[T], int, int, int]:
    """
    Slice one page out of a full result set.

    Returns:
        (page_items, total, page, page_size)
    """
    page = page if page and page > 0 else DEFAULT_PAGE
    page_size = page_size if page_size and page_size > 0 else DEFAULT_PAGE_SIZE
    start = (page - 1) * page_size
    return items[start:start + page_size], len(items), page, page_size
