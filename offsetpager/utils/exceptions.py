class PagerError(Exception):
    """Base exception for all offsetpager errors."""


class InvalidPageRequest(PagerError, ValueError):
    """Raised when a page number, page size, fetch size or batch size is below 1."""


class PageOutOfBounds(PagerError, IndexError):
    """Raised when the requested page is past the end of the results.

    Only raised under the FAIL strategy. Carries enough context to diagnose the
    request without re-running the query.
    """

    def __init__(
        self,
        target_page_number: int,
        total_count: int,
        pages_present: int,
        page_size: int,
    ) -> None:
        self.target_page_number = target_page_number
        self.total_count = total_count
        self.pages_present = pages_present
        self.page_size = page_size
        super().__init__(
            f"Page {target_page_number} out of bounds. "
            f"The result only contains {total_count} elements "
            f"({pages_present} pages of {page_size} elements)"
        )
