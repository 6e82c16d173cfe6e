"""GitHub API pagination utilities.

GitHub pages the check-runs endpoint with ``page``/``per_page`` query
parameters and wraps each page in an object carrying ``total_count``. Pages are
fetched strictly one after another so callers can stop early without paying
for requests they no longer need.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

# GitHub rejects per_page above 100
MAX_PER_PAGE = 100

T = TypeVar("T")


def raise_if_cancelled(cancel_event: asyncio.Event | None) -> None:
    """Abort the current operation if its cancellation event is set.

    Raises:
        asyncio.CancelledError: If ``cancel_event`` has been set
    """
    if cancel_event is not None and cancel_event.is_set():
        raise asyncio.CancelledError("Operation cancelled")


async def _abandon(task: asyncio.Future[Any]) -> None:
    task.cancel()
    await asyncio.wait({task})
    if not task.cancelled():
        # finished before the cancel landed; its outcome is dropped
        task.exception()


async def cancellable(request: Awaitable[T], cancel_event: asyncio.Event | None) -> T:
    """Await a request, abandoning it as soon as ``cancel_event`` is set.

    The in-flight request is cancelled rather than left to finish.

    Raises:
        asyncio.CancelledError: If ``cancel_event`` is set before or while the
            request runs
    """
    if cancel_event is None:
        return await request

    request_task = asyncio.ensure_future(request)
    if cancel_event.is_set():
        await _abandon(request_task)
        raise asyncio.CancelledError("Operation cancelled")

    cancel_waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait(
            {request_task, cancel_waiter}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        request_task.cancel()
        cancel_waiter.cancel()
        raise

    if cancel_waiter in done:
        await _abandon(request_task)
        raise asyncio.CancelledError("Operation cancelled")

    cancel_waiter.cancel()
    return request_task.result()


class PaginatedResponse:
    """One page of a paginated GitHub API response."""

    def __init__(
        self,
        items: list[Any],
        page: int,
        per_page: int,
        total_count: int | None = None,
        headers: dict[str, str] | None = None,
        url: str = "",
    ):
        """Initialize paginated response.

        Args:
            items: Items on this page
            page: 1-based page number
            per_page: Requested page size
            total_count: Total item count reported by the endpoint, if any
            headers: Response headers
            url: Request URL
        """
        self.items = items
        self.page = page
        self.per_page = per_page
        self.total_count = total_count
        self.headers = headers or {}
        self.url = url

    @property
    def is_short(self) -> bool:
        """A page shorter than the page size is the last one."""
        return len(self.items) < self.per_page

    def __repr__(self) -> str:
        return (
            f"PaginatedResponse(page={self.page}, items={len(self.items)}, "
            f"total_count={self.total_count})"
        )


class AsyncPaginator:
    """Async iterator over a page-numbered GitHub API collection.

    ``truncated`` becomes true when ``max_pages`` ended the iteration while
    more items may remain.
    """

    def __init__(
        self,
        client: Any,  # Avoid circular import
        path: str,
        params: dict[str, Any] | None = None,
        items_key: str | None = None,
        per_page: int = MAX_PER_PAGE,
        max_pages: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ):
        """Initialize async paginator.

        Args:
            client: Object exposing ``get_page(path, params, items_key)``
            path: API path
            params: Extra query parameters
            items_key: Key holding the item array when pages are wrapped objects
            per_page: Items per page (max 100 for GitHub)
            max_pages: Maximum number of pages to fetch
            cancel_event: Aborts the pending page request when set
        """
        self.client = client
        self.path = path
        self.params = dict(params or {})
        self.items_key = items_key
        self.per_page = max(1, min(per_page, MAX_PER_PAGE))
        self.max_pages = max_pages
        self.cancel_event = cancel_event
        self.pages_fetched = 0
        self.truncated = False

    async def pages(self) -> AsyncIterator[PaginatedResponse]:
        """Yield pages until a short page, the reported total, or max_pages."""
        page_number = 1
        items_seen = 0

        while self.max_pages is None or page_number <= self.max_pages:
            raise_if_cancelled(self.cancel_event)

            params = {**self.params, "per_page": self.per_page, "page": page_number}
            response: PaginatedResponse = await cancellable(
                self.client.get_page(self.path, params, items_key=self.items_key),
                self.cancel_event,
            )
            self.pages_fetched += 1
            yield response

            items_seen += len(response.items)
            if response.is_short:
                break
            if response.total_count is not None and items_seen >= response.total_count:
                break
            page_number += 1
        else:
            self.truncated = True
            logger.warning(
                f"Stopped paginating {self.path} at max_pages={self.max_pages} "
                f"after {items_seen} item(s)"
            )

    async def __aiter__(self) -> AsyncIterator[Any]:
        async for page in self.pages():
            for item in page.items:
                yield item

    async def collect_all(self) -> list[Any]:
        """Collect all items from all pages."""
        return [item async for item in self]
