"""
Cursor pagination for remote catalog listings.
"""
from typing import Any, Awaitable, Callable, List, Optional, Set, Tuple
import logging

from cost_engine.core.config import config
from cost_engine.core.errors import (
    CatalogFetchError,
    CostEngineError,
    PaginationLimitExceeded,
)


logger = logging.getLogger(__name__)

Page = Tuple[List[Any], Optional[str]]
PageQuery = Callable[[Optional[str]], Awaitable[Page]]


async def fetch_all(query_fn: PageQuery, max_pages: Optional[int] = None) -> List[Any]:
    """
    Drive a cursor-paginated listing until the cursor is exhausted.

    `query_fn` is called with None first, then with each cursor it returns,
    until it returns no cursor. Items are accumulated in page order.

    Args:
        query_fn: Async callable taking a cursor and returning (items, next_cursor)
        max_pages: Upper bound on pages (defaults to config.MAX_CATALOG_PAGES)

    Returns:
        All items from every page

    Raises:
        CatalogFetchError: If any page fails; nothing fetched so far is returned
        PaginationLimitExceeded: If the listing repeats a cursor or exceeds max_pages
    """
    limit = config.MAX_CATALOG_PAGES if max_pages is None else max_pages
    items: List[Any] = []
    seen_cursors: Set[str] = set()
    cursor: Optional[str] = None
    pages = 0

    while True:
        if pages >= limit:
            raise PaginationLimitExceeded(
                f"Catalog listing did not finish within {limit} pages"
            )
        try:
            page_items, next_cursor = await query_fn(cursor)
        except CostEngineError:
            raise
        except Exception as error:
            logger.error(f"Catalog page {pages + 1} failed: {error}")
            raise CatalogFetchError(f"Failed to fetch catalog page: {error}") from error

        pages += 1
        items.extend(page_items or [])
        logger.debug("Fetched catalog page %d (%d items)", pages, len(page_items or []))

        if not next_cursor:
            return items
        if next_cursor in seen_cursors:
            raise PaginationLimitExceeded(
                f"Catalog listing returned a repeated cursor after {pages} pages"
            )
        seen_cursors.add(next_cursor)
        cursor = next_cursor
