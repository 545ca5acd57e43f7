from __future__ import annotations

import logging
from typing import Any, Awaitable, Generic, Iterable, TypeVar, assert_never

from offsetpager.core.sources import AsyncPagingIterable
from offsetpager.lifecycle.observability import track_page
from offsetpager.utils.exceptions import InvalidPageRequest, PageOutOfBounds
from offsetpager.utils.pagination import OutOfBoundsStrategy, Page
from offsetpager.utils.settings import PagerSettings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING: Any = object()


class _PageCollector(Generic[T]):
    """Counters and buffer for a single pagination call.

    One instance is created per call and threaded through every protocol page
    it visits.
    """

    def __init__(
        self,
        strategy: OutOfBoundsStrategy,
        target_page_number: int,
        page_size: int,
    ) -> None:
        self.strategy = strategy
        self.target_page_number = target_page_number
        self.page_size = page_size
        self.current_page_number = 1
        self.current_page_size = 0
        # Holds the target page. Under RETURN_LAST_PAGE it holds the page being
        # formed instead, since a forward-only source can't tell us where it ends.
        self.elements: list[T] = []

    @property
    def tracks_current_page(self) -> bool:
        return (
            self.current_page_number == self.target_page_number
            or self.strategy is OutOfBoundsStrategy.RETURN_LAST_PAGE
        )

    def add(self, element: T) -> bool:
        """Account for the next element. Returns True once the target page is full."""
        self.current_page_size += 1

        if self.current_page_size > self.page_size:
            self.current_page_number += 1
            self.current_page_size = 1
            if self.strategy is OutOfBoundsStrategy.RETURN_LAST_PAGE:
                self.elements.clear()

        if self.tracks_current_page:
            self.elements.append(element)

        return (
            self.current_page_number == self.target_page_number
            and self.current_page_size == self.page_size
        )

    def page(self, is_last: bool) -> Page[T]:
        """Build the page collected so far."""
        return Page(tuple(self.elements), self.current_page_number, is_last)

    def finish(self, is_last: bool) -> Page[T]:
        """Resolve the call once the source is exhausted or the target page is full.

        ``is_last`` only matters when the collected page is returned.
        """
        if self.current_page_number == self.target_page_number:
            return self.page(is_last)

        strategy = self.strategy
        if strategy is OutOfBoundsStrategy.RETURN_LAST_PAGE:
            return self.page(is_last)
        elif strategy is OutOfBoundsStrategy.RETURN_EMPTY_PAGE:
            return Page((), self.target_page_number, True)
        elif strategy is OutOfBoundsStrategy.FAIL:
            total_count = (self.current_page_number - 1) * self.page_size + self.current_page_size
            raise PageOutOfBounds(
                self.target_page_number,
                total_count,
                self.current_page_number,
                self.page_size,
            )
        else:
            assert_never(strategy)


def validate_page_request(source: Any, target_page_number: int, page_size: int) -> None:
    """Check the arguments shared by every pagination entry point.

    Raises:
        TypeError: If source is None
        InvalidPageRequest: If target_page_number or page_size is below 1
    """
    if source is None:
        raise TypeError("source must not be None")
    if target_page_number < 1:
        raise InvalidPageRequest(
            f"Invalid target_page_number, expected >=1, got {target_page_number}"
        )
    if page_size < 1:
        raise InvalidPageRequest(f"Invalid page_size, expected >=1, got {page_size}")


class Pager:
    """Extracts fixed-size logical pages from forward-only result sets.

    A Pager only holds its out-of-bounds strategy, so a single instance can be
    shared freely. The sources it reads are consumed: each one must be passed to
    exactly one call.

    Example:
        pager = Pager(OutOfBoundsStrategy.RETURN_LAST_PAGE)
        page = pager.get_page(collection.find(), 3, 20)
        page = await pager.get_page_async(await MongoBatchCursor.open(coll), 3, 20)
    """

    __slots__ = ("_strategy",)

    def __init__(self, strategy: OutOfBoundsStrategy) -> None:
        if not isinstance(strategy, OutOfBoundsStrategy):
            raise TypeError(f"Expected an OutOfBoundsStrategy, got {strategy!r}")
        self._strategy = strategy

    @classmethod
    def from_settings(cls, settings: PagerSettings | None = None) -> Pager:
        """Create a Pager using the configured out-of-bounds strategy."""
        settings = settings or get_settings()
        return cls(settings.out_of_bounds)

    @property
    def strategy(self) -> OutOfBoundsStrategy:
        return self._strategy

    def __repr__(self) -> str:
        return f"Pager({self._strategy.name})"

    def get_page(self, source: Iterable[T], target_page_number: int, page_size: int) -> Page[T]:
        """Skip the beginning of a result set to return the given page.

        Args:
            source: Elements to paginate. Iterated once; a pymongo Cursor or any
                other iterable works.
            target_page_number: Page to return, starting at 1
            page_size: Number of elements per page

        Returns:
            The requested page, or the substitute chosen by the strategy

        Raises:
            InvalidPageRequest: If target_page_number or page_size is below 1
            PageOutOfBounds: If the page is past the end and the strategy is FAIL
        """
        validate_page_request(source, target_page_number, page_size)

        with track_page("get_page", target_page_number, page_size, self._strategy) as ctx:
            collector: _PageCollector[T] = _PageCollector(
                self._strategy, target_page_number, page_size
            )
            iterator = iter(source)
            for element in iterator:
                if collector.add(element):
                    break

            if collector.tracks_current_page:
                # Consumes one element past the page to find out whether it is the last.
                is_last = next(iterator, _MISSING) is _MISSING
            else:
                is_last = True
            page = collector.finish(is_last)
            ctx["page"] = page

        logger.debug(
            "Resolved page %d of size %d (%d elements, last=%s)",
            page.page_number, page_size, len(page.elements), page.is_last,
        )
        return page

    def get_page_async(
        self,
        source: AsyncPagingIterable[T],
        target_page_number: int,
        page_size: int,
    ) -> Awaitable[Page[T]]:
        """Asynchronous version of get_page over a result set fetched in protocol pages.

        Arguments are checked before anything is awaited, so InvalidPageRequest is
        raised by this call itself rather than by the returned awaitable.

        Returns:
            An awaitable resolving to the requested page. It raises PageOutOfBounds
            under the FAIL strategy, and re-raises any fetch failure as is.
        """
        validate_page_request(source, target_page_number, page_size)
        return self._get_page_async(source, target_page_number, page_size)

    async def _get_page_async(
        self,
        source: AsyncPagingIterable[T],
        target_page_number: int,
        page_size: int,
    ) -> Page[T]:
        with track_page("get_page_async", target_page_number, page_size, self._strategy) as ctx:
            collector: _PageCollector[T] = _PageCollector(
                self._strategy, target_page_number, page_size
            )
            page = await self._collect(source, collector)
            ctx["page"] = page

        logger.debug(
            "Resolved page %d of size %d (%d elements, last=%s)",
            page.page_number, page_size, len(page.elements), page.is_last,
        )
        return page

    @staticmethod
    async def _collect(source: AsyncPagingIterable[T], collector: _PageCollector[T]) -> Page[T]:
        """Walk protocol pages until the target page is full or the source ends.

        Logical and protocol page boundaries are unrelated: a logical page can
        span several protocol pages and vice versa.
        """
        while True:
            elements = source.current_page()
            remaining = len(elements)
            for element in elements:
                remaining -= 1
                if not collector.add(element):
                    continue
                if remaining > 0:
                    return collector.page(is_last=False)
                if not source.has_more_pages():
                    return collector.page(is_last=True)
                # The server may send an empty final protocol page, so the only
                # way to know whether this page is the last is to fetch the next.
                logger.debug("Fetching next protocol page to check for trailing elements")
                next_source = await source.fetch_next_page()
                return collector.page(is_last=len(next_source.current_page()) == 0)

            if not source.has_more_pages():
                return collector.finish(is_last=True)
            logger.debug(
                "Fetching next protocol page (logical page %d, %d/%d elements)",
                collector.current_page_number,
                collector.current_page_size,
                collector.page_size,
            )
            source = await source.fetch_next_page()
