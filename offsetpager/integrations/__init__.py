from offsetpager.integrations.fastapi import (
    PageResponse,
    PaginationParams,
    register_exception_handlers,
)
from offsetpager.integrations.mongo import MongoBatchCursor, fetch_page, parse_sort

__all__ = [
    "PageResponse",
    "PaginationParams",
    "register_exception_handlers",
    "MongoBatchCursor",
    "fetch_page",
    "parse_sort",
]
