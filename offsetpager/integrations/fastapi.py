from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from offsetpager.utils.exceptions import InvalidPageRequest, PageOutOfBounds, PagerError
from offsetpager.utils.pagination import Page
from offsetpager.utils.settings import get_settings

T = TypeVar("T")


def register_exception_handlers(app: Any) -> None:
    """Register offsetpager exception handlers on a FastAPI app."""
    from starlette.responses import JSONResponse

    @app.exception_handler(PageOutOfBounds)
    async def page_out_of_bounds_handler(request: Any, exc: PageOutOfBounds):
        return JSONResponse(
            status_code=404,
            content={
                "detail": str(exc),
                "target_page_number": exc.target_page_number,
                "total_count": exc.total_count,
                "pages_present": exc.pages_present,
                "page_size": exc.page_size,
            },
        )

    @app.exception_handler(InvalidPageRequest)
    async def invalid_page_request_handler(request: Any, exc: InvalidPageRequest):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(PagerError)
    async def pager_error_handler(request: Any, exc: PagerError):
        return JSONResponse(status_code=500, content={"detail": str(exc)})


class PaginationParams:
    """FastAPI dependency for pagination parameters.

    Out-of-range values are clamped instead of rejected; the size limits come
    from the current settings.
    """

    def __init__(self, page: int = 1, size: int | None = None):
        settings = get_settings()
        if size is None:
            size = settings.default_page_size
        self.page = max(1, page)
        self.size = min(max(1, size), settings.max_page_size)


class PageResponse(BaseModel, Generic[T]):
    """Paginated response model for API endpoints."""

    items: list[T]
    page: int
    size: int
    is_last: bool
    has_next: bool
    has_prev: bool

    @classmethod
    def from_page(cls, page_obj: Page, size: int) -> PageResponse:
        return cls(
            items=list(page_obj.elements),
            page=page_obj.page_number,
            size=size,
            is_last=page_obj.is_last,
            has_next=page_obj.has_next,
            has_prev=page_obj.has_prev,
        )
