from offsetpager.core.pager import Pager
from offsetpager.core.sources import AsyncPagingIterable, ChunkedResult, chunked

__all__ = [
    "Pager",
    "AsyncPagingIterable",
    "ChunkedResult",
    "chunked",
]
