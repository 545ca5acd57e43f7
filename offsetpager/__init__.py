from offsetpager.core import (
    Pager,
    AsyncPagingIterable,
    ChunkedResult,
    chunked,
)
from offsetpager.lifecycle import (
    enable_tracing,
    disable_tracing,
    PageEvent,
    add_listener,
)
from offsetpager.integrations import (
    MongoBatchCursor,
    fetch_page,
    PageResponse,
    PaginationParams,
    register_exception_handlers,
)
from offsetpager.utils import (
    PagerError,
    InvalidPageRequest,
    PageOutOfBounds,
    Page,
    OutOfBoundsStrategy,
    PagerSettings,
    configure,
    get_settings,
    reset_settings,
)

__all__ = [
    # Core
    "Pager",
    "AsyncPagingIterable",
    "ChunkedResult",
    "chunked",
    # Lifecycle
    "enable_tracing",
    "disable_tracing",
    "PageEvent",
    "add_listener",
    # Integrations
    "MongoBatchCursor",
    "fetch_page",
    "PageResponse",
    "PaginationParams",
    "register_exception_handlers",
    # Utils
    "PagerError",
    "InvalidPageRequest",
    "PageOutOfBounds",
    "Page",
    "OutOfBoundsStrategy",
    "PagerSettings",
    "configure",
    "get_settings",
    "reset_settings",
]
