"""URL classification helpers for resource and API metrics."""

import posixpath
from collections.abc import Iterable
from urllib.parse import urlsplit

_EXTENSION_TYPES = {
    ".js": "script",
    ".mjs": "script",
    ".css": "stylesheet",
    ".jpg": "image",
    ".jpeg": "image",
    ".png": "image",
    ".gif": "image",
    ".svg": "image",
    ".webp": "image",
    ".woff": "font",
    ".woff2": "font",
    ".ttf": "font",
    ".eot": "font",
}

# Resources at or below this size and duration are not worth a metric
SIGNIFICANT_DURATION_MS = 100
SIGNIFICANT_TRANSFER_BYTES = 50_000


def infer_resource_type(url: str) -> str:
    """Infer a resource type from its URL.

    The path extension is checked first, then an ``/api/`` path segment.

    Args:
        url: Absolute or relative resource URL.

    Returns:
        One of "script", "stylesheet", "image", "font", "api", "other".
    """
    path = urlsplit(url).path
    extension = posixpath.splitext(path)[1].lower()
    if extension in _EXTENSION_TYPES:
        return _EXTENSION_TYPES[extension]
    if "/api/" in path:
        return "api"
    return "other"


def is_significant_resource(duration: float, transfer_size: int) -> bool:
    """Return True if a resource load is slow or large enough to record."""
    return (
        duration > SIGNIFICANT_DURATION_MS
        or transfer_size > SIGNIFICANT_TRANSFER_BYTES
    )


def is_api_url(url: str, path_marker: str, hosts: Iterable[str]) -> bool:
    """Return True if the URL targets an API path or a backend host.

    Args:
        url: Request URL.
        path_marker: Substring identifying API paths (e.g., "/api/").
        hosts: Backend host fragments (e.g., "supabase.co").
    """
    if path_marker in url:
        return True
    return any(host in url for host in hosts)
