"""Per-request capture context for metrics.

Holds the page URL, user agent and user id that each Metric is stamped
with. Stored in a ContextVar so concurrent asyncio tasks see their own
values.
"""

from contextvars import ContextVar
from dataclasses import dataclass, replace

DEFAULT_PAGE_URL = "about:blank"
DEFAULT_USER_AGENT = "perfmon"


@dataclass(frozen=True)
class CaptureContext:
    """Environment a metric was captured in."""

    page_url: str = DEFAULT_PAGE_URL
    user_agent: str = DEFAULT_USER_AGENT
    user_id: str | None = None


_capture_context: ContextVar[CaptureContext | None] = ContextVar(
    "perfmon_capture_context", default=None
)


def get_capture_context() -> CaptureContext:
    """Return the active capture context (defaults when none is set)."""
    return _capture_context.get() or CaptureContext()


def set_capture_context(
    page_url: str | None = None,
    user_agent: str | None = None,
    user_id: str | None = None,
) -> CaptureContext:
    """Replace the capture context for the current task.

    Unspecified fields take their defaults.
    """
    context = CaptureContext(
        page_url=page_url or DEFAULT_PAGE_URL,
        user_agent=user_agent or DEFAULT_USER_AGENT,
        user_id=user_id,
    )
    _capture_context.set(context)
    return context


def update_capture_context(**fields: str | None) -> CaptureContext:
    """Update selected fields of the current capture context.

    Useful when a session starts (or ends) mid-request.
    """
    context = replace(get_capture_context(), **fields)
    _capture_context.set(context)
    return context


def clear_capture_context() -> None:
    """Reset the capture context to defaults."""
    _capture_context.set(None)
