"""Core domain models for performance metrics."""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, ClassVar, Literal

MetricKind = Literal["timing", "navigation", "resource", "custom"]
Rating = Literal["good", "needs-improvement", "poor"]

METRIC_KINDS: frozenset[str] = frozenset({"timing", "navigation", "resource", "custom"})

WEB_VITAL_NAMES = frozenset({"FCP", "LCP", "CLS", "FID", "TTFB"})


@dataclass(frozen=True)
class WebVitalExtra:
    """Supplementary fields for Core Web Vital metrics (FCP, LCP, CLS, FID).

    Attributes:
        rating: Qualitative rating bucket.
        element: Tag name of the LCP paint target, if known.
        event_type: Input event name for FID.
    """

    tag: ClassVar[str] = "web_vital"

    rating: Rating
    element: str | None = None
    event_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"rating": self.rating}
        if self.element is not None:
            data["element"] = self.element
        if self.event_type is not None:
            data["eventType"] = self.event_type
        return data


@dataclass(frozen=True)
class ResourceTimingExtra:
    """Supplementary fields for resource_timing metrics."""

    tag: ClassVar[str] = "resource_timing"

    resource_name: str
    resource_type: str
    transfer_size: int
    encoded_size: int
    decoded_size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource_name": self.resource_name,
            "resource_type": self.resource_type,
            "transfer_size": self.transfer_size,
            "encoded_size": self.encoded_size,
            "decoded_size": self.decoded_size,
        }


@dataclass(frozen=True)
class ApiCallExtra:
    """Supplementary fields for api_response_time and api_error metrics.

    Exactly one of ``status`` (successful call) or ``error`` (raised call)
    is set.
    """

    tag: ClassVar[str] = "api_call"

    api_url: str
    method: str
    status: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"api_url": self.api_url, "method": self.method}
        if self.error is not None:
            data["error"] = self.error
        else:
            data["status"] = self.status
        return data


@dataclass(frozen=True)
class ComponentRenderExtra:
    """Supplementary fields for component_render_time metrics."""

    tag: ClassVar[str] = "component_render"

    component_name: str

    def to_dict(self) -> dict[str, Any]:
        return {"component_name": self.component_name}


@dataclass(frozen=True)
class CustomExtra:
    """Open, caller-supplied fields for custom metrics.

    The mapping is copied into a read-only proxy on construction so the
    metric cannot be mutated through a reference the caller still holds.

    Raises:
        ValueError: The mapping cannot be encoded as JSON.
    """

    tag: ClassVar[str] = "custom"

    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        data = dict(self.data)
        try:
            json.dumps(data)
        except (TypeError, ValueError) as e:
            raise ValueError(f"custom extra is not JSON serializable: {e}") from e
        object.__setattr__(self, "data", MappingProxyType(data))

    def to_dict(self) -> dict[str, Any]:
        return dict(self.data)


MetricExtra = (
    WebVitalExtra
    | ResourceTimingExtra
    | ApiCallExtra
    | ComponentRenderExtra
    | CustomExtra
)


def extra_from_dict(name: str, data: Mapping[str, Any] | None) -> MetricExtra | None:
    """Rebuild the typed extra variant for a metric from its wire dictionary.

    The variant is selected by metric name. Unknown names, or payloads that
    do not fit the expected variant, fall back to CustomExtra.

    Args:
        name: The metric name the payload belongs to.
        data: The additional_data dictionary, or None.

    Returns:
        The typed extra, or None when there is no payload.
    """
    if data is None:
        return None
    try:
        if name in WEB_VITAL_NAMES and "rating" in data:
            return WebVitalExtra(
                rating=data["rating"],
                element=data.get("element"),
                event_type=data.get("eventType"),
            )
        if name == "resource_timing":
            return ResourceTimingExtra(
                resource_name=data["resource_name"],
                resource_type=data["resource_type"],
                transfer_size=int(data["transfer_size"]),
                encoded_size=int(data["encoded_size"]),
                decoded_size=int(data["decoded_size"]),
            )
        if name in ("api_response_time", "api_error"):
            return ApiCallExtra(
                api_url=data["api_url"],
                method=data["method"],
                status=data.get("status"),
                error=data.get("error"),
            )
        if name == "component_render_time":
            return ComponentRenderExtra(component_name=data["component_name"])
    except (KeyError, TypeError, ValueError):
        pass
    return CustomExtra(data)


@dataclass(frozen=True)
class Metric:
    """A single performance observation.

    Attributes:
        name: Metric name (e.g., FCP, api_response_time). Not unique.
        value: Measurement; milliseconds for timings, unitless for CLS.
        kind: Originating observer class (timing, navigation, resource, custom).
        page_url: URL of the page active at capture time.
        user_agent: Raw user-agent string.
        timestamp: ISO-8601 capture time.
        user_id: Present only when a session was active.
        extra: Typed supplementary fields, keyed by metric name.
    """

    name: str
    value: float
    kind: MetricKind
    page_url: str
    user_agent: str
    timestamp: str
    user_id: str | None = None
    extra: MetricExtra | None = None

    def __post_init__(self) -> None:
        if self.kind not in METRIC_KINDS:
            raise ValueError(f"unknown metric kind: {self.kind!r}")

    @property
    def extra_data(self) -> dict[str, Any] | None:
        """Return the extra payload as a plain dictionary."""
        return self.extra.to_dict() if self.extra is not None else None


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def create_metric(
    name: str,
    value: float,
    kind: MetricKind,
    page_url: str,
    user_agent: str,
    user_id: str | None = None,
    extra: MetricExtra | None = None,
    now: datetime | None = None,
) -> Metric:
    """Create a Metric stamped with the capture time.

    Args:
        name: Metric name.
        value: Measured value.
        kind: Metric kind.
        page_url: Active page URL.
        user_agent: Raw user-agent string.
        user_id: Optional active user id.
        extra: Optional typed supplementary fields.
        now: Capture time (default: current UTC time).

    Returns:
        Metric with an ISO-8601 timestamp.
    """
    captured_at = now if now is not None else utc_now()
    return Metric(
        name=name,
        value=float(value),
        kind=kind,
        page_url=page_url,
        user_agent=user_agent,
        timestamp=captured_at.isoformat(timespec="microseconds"),
        user_id=user_id,
        extra=extra,
    )
