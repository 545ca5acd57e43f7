from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from offsetpager.utils.pagination import OutOfBoundsStrategy


logger = logging.getLogger("offsetpager")


@dataclass(frozen=True)
class PageEvent:
    """Represents a single pagination call for tracing."""

    operation: str
    target_page_number: int
    page_size: int
    strategy: str
    page_number: int | None = None
    element_count: int | None = None
    is_last: bool | None = None
    duration_ms: float = 0.0
    error: str | None = None


class _TracingState:
    """Process-wide tracing switches, listeners and captured events."""

    def __init__(self) -> None:
        self.listeners: list[Callable[[PageEvent], Any]] = []
        self.events: list[PageEvent] = []
        self.reset()

    def reset(self) -> None:
        self.enabled = False
        self.capture_events = False
        self.slow_page_threshold_ms = 100.0
        self.listeners.clear()
        self.events.clear()


_state = _TracingState()


def enable_tracing(slow_page_ms: float = 100.0, capture_events: bool = False) -> None:
    """Start emitting a PageEvent for every pagination call.

    Args:
        slow_page_ms: Calls slower than this are logged as warnings
        capture_events: Keep events in memory for :func:`get_events`
    """
    _state.enabled = True
    _state.slow_page_threshold_ms = slow_page_ms
    _state.capture_events = capture_events


def disable_tracing() -> None:
    """Stop tracing and drop listeners and captured events."""
    _state.reset()


def get_events() -> list[PageEvent]:
    return list(_state.events)


def clear_events() -> None:
    _state.events.clear()


def add_listener(callback: Callable[[PageEvent], Any]) -> None:
    """Register a callback invoked with each PageEvent.

    A listener that raises is logged and skipped; it never changes the
    outcome of the pagination call being traced.
    """
    _state.listeners.append(callback)


def remove_listener(callback: Callable[[PageEvent], Any]) -> None:
    _state.listeners.remove(callback)


def emit_event(event: PageEvent) -> None:
    """Record a finished pagination call and hand it to listeners."""
    if not _state.enabled:
        return

    if _state.capture_events:
        _state.events.append(event)

    threshold = _state.slow_page_threshold_ms
    if event.duration_ms > threshold:
        logger.warning(
            "Slow pagination: %s of page %d (size %d) took %.1fms (threshold: %.1fms)",
            event.operation,
            event.target_page_number,
            event.page_size,
            event.duration_ms,
            threshold,
        )

    _notify_listeners(event)
    _try_emit_otel_span(event)


def _notify_listeners(event: PageEvent) -> None:
    # Snapshot, so a listener may remove itself while being notified.
    for listener in tuple(_state.listeners):
        try:
            listener(event)
        except Exception:
            logger.exception("Page event listener %r failed", listener)


def _span_attributes(event: PageEvent) -> dict[str, Any]:
    attributes: dict[str, Any] = {
        "pager.operation": event.operation,
        "pager.target_page_number": event.target_page_number,
        "pager.page_size": event.page_size,
        "pager.strategy": event.strategy,
        "pager.duration_ms": event.duration_ms,
    }
    if event.page_number is not None:
        attributes["pager.page_number"] = event.page_number
        attributes["pager.element_count"] = event.element_count
        attributes["pager.is_last"] = event.is_last
    if event.error:
        attributes["error.type"] = event.error
    return attributes


def _try_emit_otel_span(event: PageEvent) -> None:
    """Attempt to emit an OpenTelemetry span if the library is available."""
    try:
        from opentelemetry import trace
    except ImportError:
        return

    tracer = trace.get_tracer("offsetpager")
    try:
        with tracer.start_as_current_span(f"offsetpager.{event.operation}") as span:
            span.set_attributes(_span_attributes(event))
    except Exception:
        logger.exception("Failed to emit span for %s", event.operation)


@contextmanager
def track_page(
    operation: str,
    target_page_number: int,
    page_size: int,
    strategy: OutOfBoundsStrategy,
) -> Iterator[dict[str, Any]]:
    """Context manager that times a pagination call and emits a PageEvent.

    The caller stores the resulting page under the "page" key of the yielded dict.
    """
    if not _state.enabled:
        yield {"page": None}
        return

    start = time.perf_counter()
    ctx: dict[str, Any] = {"page": None}
    error: str | None = None
    try:
        yield ctx
    except BaseException as exc:
        error = type(exc).__name__
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        page = ctx.get("page")
        event = PageEvent(
            operation=operation,
            target_page_number=target_page_number,
            page_size=page_size,
            strategy=strategy.name,
            page_number=page.page_number if page is not None else None,
            element_count=len(page.elements) if page is not None else None,
            is_last=page.is_last if page is not None else None,
            duration_ms=duration_ms,
            error=error,
        )
        emit_event(event)
