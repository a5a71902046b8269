"""Incremental "load more" pagination over a catalog collection."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass
from dataclasses import field
from typing import Awaitable
from typing import Callable
from typing import Hashable
from typing import List
from typing import Optional
from typing import Sequence

from aitoonic.data_store import CatalogStore
from aitoonic.data_store import Filter
from aitoonic.errors import CatalogError
from aitoonic.errors import FetchError
from aitoonic.models import parse_rows

logger = logging.getLogger(__name__)


@dataclass
class PageResult:
    items: List = field(default_factory=list)
    has_more: bool = False


def page_bounds(page_number: int, page_size: int) -> tuple[int, int]:
    """Offset and limit for a 1-based page."""
    if page_number < 1:
        raise ValueError(f"page_number must be >= 1, got {page_number}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return (page_number - 1) * page_size, page_size


async def load_page(
    store: CatalogStore,
    collection: str,
    page_number: int,
    page_size: int,
    filters: Optional[Sequence[Filter]] = None,
) -> PageResult:
    """Fetch one page of parsed entities.

    ``has_more`` is a heuristic: a full page means there may be more. When the
    collection size is an exact multiple of the page size, the caller learns
    about the end only from the following (empty) page. Rows that fail
    validation are dropped from ``items`` but still count towards a full page.
    """
    offset, limit = page_bounds(page_number, page_size)
    try:
        rows = await asyncio.to_thread(store.select_range, collection, offset, limit, filters)
        items = parse_rows(collection, rows)
    except CatalogError:
        raise
    except Exception as e:
        raise FetchError(f"Failed to load {collection} page {page_number}: {e}") from e
    return PageResult(items=items, has_more=len(rows) == page_size)


PageFetcher = Callable[[int, int], Awaitable[PageResult]]


def store_fetcher(
    store: CatalogStore, collection: str, filters: Optional[Sequence[Filter]] = None
) -> PageFetcher:
    """Bind ``load_page`` to one collection and filter set."""

    async def fetch(page_number: int, page_size: int) -> PageResult:
        return await load_page(store, collection, page_number, page_size, filters)

    return fetch


class PaginatedFetchController:
    """Accumulates pages of one listing.

    Page 1 replaces the visible items, later pages are appended in the order
    the store returned them. Only one ``advance`` may be in flight; a reload of
    page 1 may supersede it, in which case the older response is dropped.
    """

    def __init__(self, fetch_page: PageFetcher, page_size: int) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self.fetch_page = fetch_page
        self.page_size = page_size
        self.current_page = 0
        self.items: List = []
        self.has_more = False
        self.last_error: Optional[FetchError] = None
        self._sequence = 0
        self._in_flight: Optional[int] = None

    @property
    def loading(self) -> bool:
        return self._in_flight is not None

    async def load(self, page_number: int = 1) -> Optional[PageResult]:
        """Load ``page_number`` and merge it into ``items``.

        Returns the page, or None when a newer load superseded this one.
        Raises FetchError with state left untouched when the fetch fails.
        """
        self._sequence += 1
        sequence = self._sequence
        self._in_flight = sequence
        try:
            result = await self.fetch_page(page_number, self.page_size)
        except FetchError as e:
            if sequence == self._sequence:
                self.last_error = e
                logger.warning(f"Page {page_number} failed, keeping page {self.current_page}: {e}")
                raise
            logger.debug(f"Ignoring failure of superseded request {sequence} for page {page_number}")
            return None
        finally:
            if self._in_flight == sequence:
                self._in_flight = None

        if sequence != self._sequence:
            logger.debug(f"Discarding stale response for page {page_number} (request {sequence})")
            return None

        if page_number == 1:
            self.items = list(result.items)
        else:
            self.items.extend(result.items)
        self.current_page = page_number
        self.has_more = result.has_more
        self.last_error = None
        return result

    async def reset(self) -> Optional[PageResult]:
        """Reload from the first page, replacing everything shown so far."""
        return await self.load(1)

    async def advance(self) -> bool:
        """Load the next page. Returns False when a load is already running."""
        if self.loading:
            logger.debug(f"Ignoring advance past page {self.current_page}: load in flight")
            return False
        await self.load(self.current_page + 1)
        return True


class ControllerRegistry:
    """Bounded LRU of controllers, one per (session, listing)."""

    def __init__(self, max_size: int = 1000) -> None:
        self.max_size = max_size
        self._controllers: OrderedDict[Hashable, PaginatedFetchController] = OrderedDict()

    def __len__(self) -> int:
        return len(self._controllers)

    def get(self, key: Hashable) -> Optional[PaginatedFetchController]:
        controller = self._controllers.get(key)
        if controller is not None:
            self._controllers.move_to_end(key)
        return controller

    def create(self, key: Hashable, fetch_page: PageFetcher, page_size: int) -> PaginatedFetchController:
        controller = PaginatedFetchController(fetch_page, page_size)
        self._controllers[key] = controller
        self._controllers.move_to_end(key)
        while len(self._controllers) > self.max_size:
            evicted, _ = self._controllers.popitem(last=False)
            logger.debug(f"Evicted listing controller {evicted!r}")
        return controller

    def clear(self) -> None:
        self._controllers.clear()
