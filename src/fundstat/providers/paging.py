"""Cursor pagination over Horizon collections."""

import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 200


async def fetch_all_pages(
    fetch_page: Callable[[Optional[str], int], Awaitable[list[T]]],
    paging_token: Callable[[T], str],
    page_size: int = DEFAULT_PAGE_SIZE,
    max_pages: Optional[int] = None,
) -> list[T]:
    """
    Collect every record of a paginated collection.

    Args:
        fetch_page: Called with (cursor, limit); returns one page of records.
        paging_token: Extracts the cursor from a record.
        page_size: Records requested per page. A shorter page ends the walk.
        max_pages: Optional hard stop.

    Returns:
        All records in the order the pages returned them.
    """
    records: list[T] = []
    cursor: Optional[str] = None
    pages = 0
    while True:
        page = await fetch_page(cursor, page_size)
        pages += 1
        records.extend(page)
        if len(page) < page_size:
            break
        if max_pages is not None and pages >= max_pages:
            logger.warning("Stopped paging after %d pages (%d records)", pages, len(records))
            break
        next_cursor = paging_token(page[-1])
        if not next_cursor or next_cursor == cursor:
            break
        cursor = next_cursor
    return records
