"""Derived durations from a navigation timing record."""

from perfmon.core.entries import NavigationEntry

NAVIGATION_METRIC_NAMES = (
    "dns_lookup",
    "tcp_connection",
    "ssl_negotiation",
    "time_to_first_byte",
    "dom_interactive",
    "dom_complete",
    "load_complete",
)


def derive_navigation_timings(entry: NavigationEntry) -> dict[str, float]:
    """Compute the fixed set of navigation durations.

    Args:
        entry: A single navigation timing record.

    Returns:
        Ordered mapping of metric name to duration in milliseconds.
        ssl_negotiation is 0 when no secure connection was made.
    """
    ssl_negotiation = (
        entry.connect_end - entry.secure_connection_start
        if entry.secure_connection_start > 0
        else 0.0
    )
    return {
        "dns_lookup": entry.domain_lookup_end - entry.domain_lookup_start,
        "tcp_connection": entry.connect_end - entry.connect_start,
        "ssl_negotiation": ssl_negotiation,
        "time_to_first_byte": entry.response_start - entry.request_start,
        "dom_interactive": entry.dom_interactive - entry.navigation_start,
        "dom_complete": entry.dom_complete - entry.navigation_start,
        "load_complete": entry.load_event_end - entry.navigation_start,
    }
