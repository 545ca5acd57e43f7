from offsetpager.utils.exceptions import (
    PagerError,
    InvalidPageRequest,
    PageOutOfBounds,
)
from offsetpager.utils.pagination import Page, OutOfBoundsStrategy
from offsetpager.utils.settings import (
    PagerSettings,
    configure,
    get_settings,
    reset_settings,
)

__all__ = [
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
