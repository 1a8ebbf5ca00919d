"""
Cursor pagination walker.

Scryfall list responses carry ``has_more`` and ``next_page``. The walker keeps
following ``next_page`` until the API stops signaling more, a page fails, a
URL repeats, or the page cap is reached. A failing page ends the stream; it
is not an error for the caller.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from setkeeper.config import MAX_PAGES
from setkeeper.models.card import identity_of, is_displayable
from setkeeper.services.scryfall_client import ScryfallError, SearchPage

logger = logging.getLogger(__name__)

PageFetcher = Callable[[str], Awaitable[SearchPage]]
RecordPredicate = Callable[[dict[str, Any]], bool]


async def walk_pages(
    fetch_page: PageFetcher,
    start_url: str | None,
    seen: set[str] | None = None,
    accept: RecordPredicate | None = None,
    max_pages: int = MAX_PAGES,
) -> list[dict[str, Any]]:
    """
    Fetch every remaining page and collect the records worth keeping.

    Args:
        fetch_page: Coroutine fetching one page by URL
        start_url: First continuation URL (None means nothing to do)
        seen: Identities already known; survivors are added to it
        accept: Extra predicate a record must pass
        max_pages: Hard cap on pages fetched

    Returns:
        Displayable, unseen, accepted records in page order
    """
    collected: list[dict[str, Any]] = []
    visited: set[str] = set()
    url = start_url
    pages = 0

    while url:
        if url in visited:
            logger.warning("Pagination loop detected at %s, stopping", url)
            break
        if pages >= max_pages:
            logger.warning("Stopped paging after %d pages (cap reached)", pages)
            break

        visited.add(url)
        pages += 1

        try:
            page = await fetch_page(url)
        except ScryfallError as e:
            logger.warning("Page fetch failed, ending pagination: %s", e)
            break

        for record in page.records:
            if not is_displayable(record):
                continue
            identity = identity_of(record)
            if not identity:
                logger.warning("Dropping record without an id: %r", record.get("name"))
                continue
            if seen is not None and identity in seen:
                continue
            if accept is not None and not accept(record):
                continue
            collected.append(record)
            if seen is not None:
                seen.add(identity)

        logger.debug(
            "Page %d: %d records, %d kept so far", pages, len(page.records), len(collected)
        )
        url = page.next_page

    return collected
