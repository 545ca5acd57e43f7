from __future__ import annotations

from typing import Generic, Iterable, Protocol, Sequence, TypeVar, runtime_checkable

from offsetpager.utils.exceptions import InvalidPageRequest, PagerError

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class AsyncPagingIterable(Protocol[T_co]):
    """A result set delivered in protocol pages fetched one at a time.

    ``current_page`` and ``fetch_next_page`` refer to protocol pages, the
    chunks sent by the server, not to the logical pages built by the Pager.
    """

    def current_page(self) -> Sequence[T_co]:
        """Elements already received for the active protocol page."""
        ...

    def has_more_pages(self) -> bool:
        """Whether the server may hold more protocol pages."""
        ...

    async def fetch_next_page(self) -> AsyncPagingIterable[T_co]:
        """Fetch the next protocol page, returning a view positioned on it."""
        ...


class _FetchCounter:
    """Shared by every view of one ChunkedResult."""

    def __init__(self) -> None:
        self.count = 0


class ChunkedResult(Generic[T]):
    """In-memory AsyncPagingIterable that serves a sequence in fixed-size chunks.

    Each instance is a view on one protocol page; ``fetch_next_page`` returns a
    new view on the following chunk. With ``trailing_empty_page`` the last data
    chunk is followed by an empty one, the way a server that only detects
    exhaustion on the next request behaves.
    """

    def __init__(
        self,
        elements: Sequence[T],
        fetch_size: int,
        *,
        trailing_empty_page: bool = False,
        _offset: int = 0,
        _counter: _FetchCounter | None = None,
    ) -> None:
        if fetch_size < 1:
            raise InvalidPageRequest(f"Invalid fetch_size, expected >=1, got {fetch_size}")
        self._elements = elements
        self._fetch_size = fetch_size
        self._trailing_empty_page = trailing_empty_page
        self._offset = _offset
        self._counter = _counter or _FetchCounter()
        self._chunk = tuple(elements[_offset:_offset + fetch_size])

    @property
    def fetch_size(self) -> int:
        return self._fetch_size

    @property
    def fetch_count(self) -> int:
        """Number of protocol pages fetched so far across the whole chain."""
        return self._counter.count

    def current_page(self) -> Sequence[T]:
        return self._chunk

    def has_more_pages(self) -> bool:
        next_offset = self._offset + self._fetch_size
        if next_offset < len(self._elements):
            return True
        # The trailing empty chunk comes once, right after a non-empty last chunk.
        return self._trailing_empty_page and len(self._chunk) > 0

    async def fetch_next_page(self) -> ChunkedResult[T]:
        if not self.has_more_pages():
            raise PagerError("No more pages to fetch")
        self._counter.count += 1
        return ChunkedResult(
            self._elements,
            self._fetch_size,
            trailing_empty_page=self._trailing_empty_page,
            _offset=self._offset + self._fetch_size,
            _counter=self._counter,
        )

    def __repr__(self) -> str:
        return (
            f"ChunkedResult(offset={self._offset}, chunk={list(self._chunk)!r}, "
            f"more={self.has_more_pages()})"
        )


def chunked(
    iterable: Iterable[T],
    fetch_size: int,
    *,
    trailing_empty_page: bool = False,
) -> ChunkedResult[T]:
    """Materialize an iterable and serve it as protocol pages of ``fetch_size``."""
    return ChunkedResult(
        tuple(iterable), fetch_size, trailing_empty_page=trailing_empty_page
    )
