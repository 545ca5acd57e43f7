from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


class OutOfBoundsStrategy(Enum):
    """What to do when the requested page is past the end of the results."""

    # Raise PageOutOfBounds. The first page of an empty result is still returned.
    FAIL = "fail"
    # Return the last non-empty page; its page_number differs from the requested one.
    RETURN_LAST_PAGE = "return_last_page"
    # Return an empty page carrying the requested page number.
    RETURN_EMPTY_PAGE = "return_empty_page"


@dataclass(frozen=True)
class Page(Generic[T]):
    """A logical page extracted from an ordered result stream."""

    elements: tuple[T, ...]
    page_number: int
    is_last: bool

    @property
    def has_next(self) -> bool:
        return not self.is_last

    @property
    def has_prev(self) -> bool:
        return self.page_number > 1

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[T]:
        return iter(self.elements)
