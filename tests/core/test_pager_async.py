import asyncio

import pytest

from offsetpager import (
    ChunkedResult,
    InvalidPageRequest,
    OutOfBoundsStrategy,
    Page,
    PageOutOfBounds,
    Pager,
    chunked,
)

ALL_STRATEGIES = list(OutOfBoundsStrategy)
FETCH_SIZES = [1, 2, 3, 100]


def _letters(text: str) -> list[str]:
    return [c for c in text.split(",") if c]


class _FailingResult:
    """Protocol pages that fail when fetching past ``fail_after`` pages."""

    def __init__(self, chunks, fail_after, index=0):
        self._chunks = chunks
        self._fail_after = fail_after
        self._index = index

    def current_page(self):
        return self._chunks[self._index]

    def has_more_pages(self):
        return True

    async def fetch_next_page(self):
        if self._index + 1 >= self._fail_after:
            raise ConnectionError("fetch failed")
        return _FailingResult(self._chunks, self._fail_after, self._index + 1)


class _ExplicitChunks:
    """Protocol pages given one by one, including empty ones."""

    def __init__(self, chunks, index=0, fetches=None):
        self._chunks = chunks
        self._index = index
        self.fetches = fetches if fetches is not None else []

    def current_page(self):
        return self._chunks[self._index]

    def has_more_pages(self):
        return self._index + 1 < len(self._chunks)

    async def fetch_next_page(self):
        self.fetches.append(self._index + 1)
        await asyncio.sleep(0)
        return _ExplicitChunks(self._chunks, self._index + 1, self.fetches)


class TestExistingPages:
    @pytest.mark.parametrize("fetch_size", FETCH_SIZES)
    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    @pytest.mark.parametrize(
        "source, page, size, expected, is_last",
        [
            ("a,b,c,d,e,f", 1, 3, "a,b,c", False),
            ("a,b,c,d,e,f", 2, 3, "d,e,f", True),
            ("a,b,c,d,e,f", 2, 4, "e,f", True),
            ("a,b,c,d,e,f", 2, 5, "f", True),
            ("a,b,c", 1, 3, "a,b,c", True),
            ("a,b", 1, 3, "a,b", True),
            ("a", 1, 3, "a", True),
            ("", 1, 3, "", True),
        ],
    )
    async def test_returns_existing_page(
        self, fetch_size, strategy, source, page, size, expected, is_last
    ):
        result = await Pager(strategy).get_page_async(
            chunked(_letters(source), fetch_size), page, size
        )
        assert result == Page(tuple(_letters(expected)), page, is_last)

    @pytest.mark.parametrize("fetch_size", FETCH_SIZES)
    async def test_trailing_empty_chunk_marks_last(self, fetch_size):
        source = chunked(_letters("a,b,c,d,e,f"), fetch_size, trailing_empty_page=True)
        result = await Pager(OutOfBoundsStrategy.FAIL).get_page_async(source, 2, 3)
        assert result == Page(("d", "e", "f"), 2, True)

    async def test_explicit_trailing_empty_chunk(self):
        source = _ExplicitChunks([["a", "b", "c"], ["d", "e", "f"], []])
        result = await Pager(OutOfBoundsStrategy.FAIL).get_page_async(source, 2, 3)
        assert result == Page(("d", "e", "f"), 2, True)
        assert source.fetches == [1, 2]

    async def test_non_empty_next_chunk_marks_not_last(self):
        source = _ExplicitChunks([["a", "b", "c"], ["d"]])
        result = await Pager(OutOfBoundsStrategy.FAIL).get_page_async(source, 1, 3)
        assert result == Page(("a", "b", "c"), 1, False)
        assert source.fetches == [1]

    async def test_completes_without_fetch_when_chunk_has_more(self):
        source = _ExplicitChunks([["a", "b", "c", "d"], ["e"]])
        result = await Pager(OutOfBoundsStrategy.FAIL).get_page_async(source, 1, 3)
        assert result == Page(("a", "b", "c"), 1, False)
        assert source.fetches == []

    async def test_skips_empty_chunks_in_the_middle(self):
        source = _ExplicitChunks([["a"], [], [], ["b", "c"], []])
        result = await Pager(OutOfBoundsStrategy.FAIL).get_page_async(source, 2, 2)
        assert result == Page(("c",), 2, True)


class TestOutOfBounds:
    @pytest.mark.parametrize("fetch_size", FETCH_SIZES)
    @pytest.mark.parametrize(
        "source, page, size, total, pages",
        [
            ("a,b,c", 2, 3, 3, 1),
            ("a,b,c", 10, 3, 3, 1),
            ("", 2, 3, 0, 1),
        ],
    )
    async def test_fail_strategy_raises(self, fetch_size, source, page, size, total, pages):
        awaitable = Pager(OutOfBoundsStrategy.FAIL).get_page_async(
            chunked(_letters(source), fetch_size), page, size
        )
        with pytest.raises(PageOutOfBounds) as exc_info:
            await awaitable
        exc = exc_info.value
        assert (exc.target_page_number, exc.total_count, exc.pages_present, exc.page_size) == (
            page, total, pages, size,
        )

    @pytest.mark.parametrize("fetch_size", FETCH_SIZES)
    @pytest.mark.parametrize(
        "source, page, size, expected_page, expected",
        [
            ("a,b,c,d,e,f", 3, 3, 2, "d,e,f"),
            ("a,b,c,d,e", 3, 3, 2, "d,e"),
            ("a,b,c", 2, 3, 1, "a,b,c"),
        ],
    )
    async def test_last_page_strategy(self, fetch_size, source, page, size, expected_page, expected):
        result = await Pager(OutOfBoundsStrategy.RETURN_LAST_PAGE).get_page_async(
            chunked(_letters(source), fetch_size), page, size
        )
        assert result == Page(tuple(_letters(expected)), expected_page, True)

    @pytest.mark.parametrize("fetch_size", FETCH_SIZES)
    @pytest.mark.parametrize(
        "source, page, size",
        [
            ("a,b,c,d,e,f", 3, 3),
            ("a,b,c,d,e,f", 10, 3),
            ("a,b,c", 2, 3),
        ],
    )
    async def test_empty_page_strategy(self, fetch_size, source, page, size):
        result = await Pager(OutOfBoundsStrategy.RETURN_EMPTY_PAGE).get_page_async(
            chunked(_letters(source), fetch_size), page, size
        )
        assert result == Page((), page, True)


class TestArgumentValidation:
    @pytest.mark.parametrize("page, size", [(0, 3), (1, 0), (-2, -2)])
    def test_raises_before_returning_awaitable(self, page, size):
        # Not awaited: the error must come from the call itself.
        with pytest.raises(InvalidPageRequest):
            Pager(OutOfBoundsStrategy.FAIL).get_page_async(chunked("abc", 1), page, size)

    def test_none_source_raises(self):
        with pytest.raises(TypeError):
            Pager(OutOfBoundsStrategy.FAIL).get_page_async(None, 1, 1)


class TestFetching:
    async def test_fetch_failure_propagates(self):
        source = _FailingResult([["a"], ["b"], ["c"]], fail_after=2)
        with pytest.raises(ConnectionError, match="fetch failed"):
            await Pager(OutOfBoundsStrategy.RETURN_LAST_PAGE).get_page_async(source, 3, 1)

    async def test_fetch_failure_during_last_page_check_propagates(self):
        source = _FailingResult([["a", "b"], ["c"]], fail_after=1)
        with pytest.raises(ConnectionError):
            await Pager(OutOfBoundsStrategy.FAIL).get_page_async(source, 1, 2)

    async def test_fetches_only_what_is_needed(self):
        source = chunked(range(100), 5)
        page = await Pager(OutOfBoundsStrategy.FAIL).get_page_async(source, 2, 10)
        assert page.elements == tuple(range(10, 20))
        assert page.is_last is False
        # Chunks 0-3 hold elements 0-19, chunk 4 confirms more data follows
        assert source.fetch_count == 4

    async def test_concurrent_calls_share_a_pager(self):
        pager = Pager(OutOfBoundsStrategy.FAIL)
        data = list(range(50))
        pages = await asyncio.gather(
            *(pager.get_page_async(chunked(data, 3), n, 10) for n in range(1, 6))
        )
        assert [p.page_number for p in pages] == [1, 2, 3, 4, 5]
        assert [list(p.elements) for p in pages] == [data[i:i + 10] for i in range(0, 50, 10)]
        assert [p.is_last for p in pages] == [False, False, False, False, True]


class TestChunkingIndependence:
    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    @pytest.mark.parametrize("count", [0, 1, 7, 9, 12])
    @pytest.mark.parametrize("size", [1, 3, 4])
    async def test_same_result_for_any_fetch_size(self, strategy, count, size):
        data = list(range(count))
        pager = Pager(strategy)
        for target in range(1, 6):
            expected = _outcome(lambda: pager.get_page(iter(data), target, size))
            for fetch_size in FETCH_SIZES:
                actual = await _async_outcome(
                    pager.get_page_async(ChunkedResult(data, fetch_size), target, size)
                )
                assert actual == expected, (target, fetch_size)

    @pytest.mark.parametrize("fetch_size", FETCH_SIZES)
    @pytest.mark.parametrize("size", [1, 2, 3, 5])
    async def test_pages_concatenate_to_source(self, fetch_size, size):
        pager = Pager(OutOfBoundsStrategy.RETURN_LAST_PAGE)
        data = list("abcdefghijk")
        page_count = -(-len(data) // size)
        collected = []
        for number in range(1, page_count + 1):
            page = await pager.get_page_async(chunked(data, fetch_size), number, size)
            collected.extend(page.elements)
        assert collected == data


def _outcome(call):
    try:
        return call()
    except PageOutOfBounds as exc:
        return ("out_of_bounds", exc.total_count, exc.pages_present)


async def _async_outcome(awaitable):
    try:
        return await awaitable
    except PageOutOfBounds as exc:
        return ("out_of_bounds", exc.total_count, exc.pages_present)
