"""MongoDB result sets exposed as protocol pages for the async Pager.

Each protocol page is one batch returned by the server for a ``find`` or
``getMore`` command, so page boundaries are whatever the server decides.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Sequence, TypeVar

from bson.int64 import Int64
from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.collection import AsyncCollection

from offsetpager.core.pager import Pager, validate_page_request
from offsetpager.utils.exceptions import InvalidPageRequest
from offsetpager.utils.pagination import Page
from offsetpager.utils.settings import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

FilterSpec = dict[str, Any]
SortSpec = list[tuple[str, int]]


def parse_sort(*fields: str) -> SortSpec:
    """Build a sort spec from field names. Prefix with '-' for descending.

    Example: parse_sort("-created_at", "name")
    """
    sort_spec: SortSpec = []
    for field in fields:
        if field.startswith("-"):
            sort_spec.append((field[1:], DESCENDING))
        else:
            sort_spec.append((field, ASCENDING))
    return sort_spec


class _ServerCursor:
    """Server-side cursor state shared by all batches of one query.

    A server cursor belongs to the session that created it, so every command
    for the query runs in ``session``.
    """

    def __init__(
        self,
        collection: AsyncCollection,
        session: AsyncClientSession,
        cursor_id: int,
        batch_size: int,
    ) -> None:
        self.collection = collection
        self.session: AsyncClientSession | None = session
        self.cursor_id = cursor_id
        self.batch_size = batch_size
        self.batches_fetched = 1

    async def command(self, command: dict[str, Any]) -> dict[str, Any]:
        return await self.collection.database.command(command, session=self.session)

    @property
    def alive(self) -> bool:
        return self.cursor_id != 0


class MongoBatchCursor(Generic[T]):
    """One server batch of a ``find`` query, usable as an AsyncPagingIterable.

    Create with :meth:`open`. ``fetch_next_page`` issues ``getMore`` and returns
    the view on the following batch; the server cursor is shared, so closing any
    view closes the query.
    """

    def __init__(
        self,
        cursor: _ServerCursor,
        batch: Sequence[Any],
        factory: Callable[[dict[str, Any]], T] | None = None,
    ) -> None:
        self._cursor = cursor
        self._factory = factory
        if factory is not None:
            self._batch: tuple[T, ...] = tuple(factory(raw) for raw in batch)
        else:
            self._batch = tuple(batch)

    @classmethod
    async def open(
        cls,
        collection: AsyncCollection,
        filter: FilterSpec | None = None,
        *,
        sort: SortSpec | None = None,
        projection: dict[str, int] | None = None,
        batch_size: int | None = None,
        factory: Callable[[dict[str, Any]], T] | None = None,
    ) -> MongoBatchCursor[T]:
        """Run a ``find`` command and return the view on its first batch.

        Args:
            collection: Collection to query
            filter: MongoDB filter dict
            sort: Sort spec, see :func:`parse_sort`
            projection: Field projection
            batch_size: Documents per server batch (defaults to settings.fetch_size)
            factory: Converts each raw document, e.g. a model class

        Raises:
            InvalidPageRequest: If batch_size is below 1
            pymongo.errors.OperationFailure: If the server rejects the query
        """
        if batch_size is None:
            batch_size = get_settings().fetch_size
        if batch_size < 1:
            raise InvalidPageRequest(f"Invalid batch_size, expected >=1, got {batch_size}")

        command: dict[str, Any] = {
            "find": collection.name,
            "filter": filter or {},
            "batchSize": batch_size,
        }
        if sort:
            command["sort"] = dict(sort)
        if projection:
            command["projection"] = projection

        session = collection.database.client.start_session()
        try:
            reply = await collection.database.command(command, session=session)
        except BaseException:
            await session.end_session()
            raise
        server_cursor = reply["cursor"]
        logger.debug(
            "Opened cursor %s on %s with %d documents in first batch",
            server_cursor["id"], collection.name, len(server_cursor["firstBatch"]),
        )
        state = _ServerCursor(collection, session, server_cursor["id"], batch_size)
        return cls(state, server_cursor["firstBatch"], factory)

    @property
    def cursor_id(self) -> int:
        return self._cursor.cursor_id

    @property
    def batches_fetched(self) -> int:
        return self._cursor.batches_fetched

    def current_page(self) -> Sequence[T]:
        return self._batch

    def has_more_pages(self) -> bool:
        return self._cursor.alive

    async def fetch_next_page(self) -> MongoBatchCursor[T]:
        state = self._cursor
        if not state.alive:
            raise RuntimeError("Cursor is exhausted or closed")
        reply = await state.command(
            {
                "getMore": Int64(state.cursor_id),
                "collection": state.collection.name,
                "batchSize": state.batch_size,
            }
        )
        server_cursor = reply["cursor"]
        state.cursor_id = server_cursor["id"]
        state.batches_fetched += 1
        return MongoBatchCursor(state, server_cursor["nextBatch"], self._factory)

    async def close(self) -> None:
        """Kill the server cursor if the query was not read to the end, then end its session."""
        state = self._cursor
        session, state.session = state.session, None
        if session is None:
            return
        try:
            if state.alive:
                cursor_id, state.cursor_id = state.cursor_id, 0
                await state.collection.database.command(
                    {"killCursors": state.collection.name, "cursors": [Int64(cursor_id)]},
                    session=session,
                )
                logger.debug("Killed cursor %s on %s", cursor_id, state.collection.name)
        finally:
            await session.end_session()

    async def __aenter__(self) -> MongoBatchCursor[T]:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


async def fetch_page(
    collection: AsyncCollection,
    target_page_number: int,
    page_size: int,
    *,
    filter: FilterSpec | None = None,
    sort: SortSpec | None = None,
    projection: dict[str, int] | None = None,
    pager: Pager | None = None,
    batch_size: int | None = None,
    factory: Callable[[dict[str, Any]], T] | None = None,
) -> Page[T]:
    """Read one logical page of a query, closing the server cursor afterwards.

    Arguments are validated before the query is sent. ``pager`` defaults to
    one built from the current settings.

    Example:
        page = await fetch_page(db.articles, 3, 20, sort=parse_sort("-views"))
    """
    validate_page_request(collection, target_page_number, page_size)
    pager = pager or Pager.from_settings()

    async with await MongoBatchCursor.open(
        collection,
        filter,
        sort=sort,
        projection=projection,
        batch_size=batch_size,
        factory=factory,
    ) as cursor:
        return await pager.get_page_async(cursor, target_page_number, page_size)
