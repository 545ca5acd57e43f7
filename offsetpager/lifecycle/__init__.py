from offsetpager.lifecycle.observability import (
    enable_tracing,
    disable_tracing,
    PageEvent,
    add_listener,
    remove_listener,
    get_events,
    clear_events,
    track_page,
)

__all__ = [
    "enable_tracing",
    "disable_tracing",
    "PageEvent",
    "add_listener",
    "remove_listener",
    "get_events",
    "clear_events",
    "track_page",
]
