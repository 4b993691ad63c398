"""Web Vital rating classifier."""

from typing import NamedTuple

from perfmon.core.models import Rating


class Thresholds(NamedTuple):
    """Upper bounds (inclusive) of the good and needs-improvement buckets."""

    good: float
    poor: float


WEB_VITAL_THRESHOLDS: dict[str, Thresholds] = {
    "FCP": Thresholds(good=1800, poor=3000),
    "LCP": Thresholds(good=2500, poor=4000),
    "FID": Thresholds(good=100, poor=300),
    "CLS": Thresholds(good=0.1, poor=0.25),
    "TTFB": Thresholds(good=800, poor=1800),
}


def rating(metric_name: str, value: float) -> Rating:
    """Classify a metric value into a rating bucket.

    Args:
        metric_name: Web Vital name (e.g., "LCP").
        value: Measured value.

    Returns:
        "good" when value <= good threshold, "needs-improvement" when
        value <= poor threshold, otherwise "poor". Names without
        thresholds are always "good".
    """
    thresholds = WEB_VITAL_THRESHOLDS.get(metric_name)
    if thresholds is None:
        return "good"
    if value <= thresholds.good:
        return "good"
    if value <= thresholds.poor:
        return "needs-improvement"
    return "poor"
