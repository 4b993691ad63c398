"""Raw performance timeline entries, as reported by a performance source.

Times are milliseconds relative to the navigation start of the page.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PaintEntry:
    """A paint timing entry (first-paint, first-contentful-paint)."""

    name: str
    start_time: float


@dataclass(frozen=True)
class LargestContentfulPaintEntry:
    """A largest-contentful-paint candidate.

    Attributes:
        start_time: Render time of the candidate.
        element: Tag name of the paint target, when available.
    """

    start_time: float
    element: str | None = None


@dataclass(frozen=True)
class LayoutShiftEntry:
    """A layout-shift entry.

    Attributes:
        value: Layout shift score.
        had_recent_input: True when caused by recent user input.
    """

    value: float
    had_recent_input: bool = False


@dataclass(frozen=True)
class FirstInputEntry:
    """A first-input entry.

    Attributes:
        name: Input event name (e.g., "click", "keydown").
        start_time: Time the event was dispatched.
        processing_start: Time the handler started processing.
    """

    name: str
    start_time: float
    processing_start: float


@dataclass(frozen=True)
class ResourceEntry:
    """A resource-load entry."""

    name: str
    duration: float
    transfer_size: int = 0
    encoded_body_size: int = 0
    decoded_body_size: int = 0


@dataclass(frozen=True)
class NavigationEntry:
    """A navigation timing record for the current page load."""

    navigation_start: float = 0.0
    domain_lookup_start: float = 0.0
    domain_lookup_end: float = 0.0
    connect_start: float = 0.0
    connect_end: float = 0.0
    secure_connection_start: float = 0.0
    request_start: float = 0.0
    response_start: float = 0.0
    dom_interactive: float = 0.0
    dom_complete: float = 0.0
    load_event_end: float = 0.0
