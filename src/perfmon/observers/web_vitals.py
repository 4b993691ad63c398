"""Core Web Vitals observers: FCP, LCP, CLS and FID."""

from collections.abc import Sequence

from perfmon.core.entries import (
    FirstInputEntry,
    LargestContentfulPaintEntry,
    LayoutShiftEntry,
    PaintEntry,
)
from perfmon.core.models import WebVitalExtra
from perfmon.core.ports import MetricRecorderPort
from perfmon.core.rating import rating
from perfmon.observers.base import Observer

FIRST_CONTENTFUL_PAINT = "first-contentful-paint"


class PaintObserver(Observer):
    """Emits FCP when the first-contentful-paint entry arrives."""

    entry_type = "paint"

    def handle(
        self, entries: Sequence[PaintEntry], recorder: MetricRecorderPort
    ) -> None:
        for entry in entries:
            if entry.name != FIRST_CONTENTFUL_PAINT:
                continue
            recorder.record(
                "FCP",
                entry.start_time,
                "timing",
                WebVitalExtra(rating=rating("FCP", entry.start_time)),
            )


class LargestContentfulPaintObserver(Observer):
    """Emits one LCP per callback from the last (authoritative) candidate."""

    entry_type = "largest-contentful-paint"

    def handle(
        self,
        entries: Sequence[LargestContentfulPaintEntry],
        recorder: MetricRecorderPort,
    ) -> None:
        if not entries:
            return
        last = entries[-1]
        recorder.record(
            "LCP",
            last.start_time,
            "timing",
            WebVitalExtra(rating=rating("LCP", last.start_time), element=last.element),
        )


class LayoutShiftObserver(Observer):
    """Emits CLS summed over shifts not caused by recent input."""

    entry_type = "layout-shift"

    def handle(
        self, entries: Sequence[LayoutShiftEntry], recorder: MetricRecorderPort
    ) -> None:
        cls_value = sum(e.value for e in entries if not e.had_recent_input)
        if cls_value <= 0:
            return
        recorder.record(
            "CLS", cls_value, "timing", WebVitalExtra(rating=rating("CLS", cls_value))
        )


class FirstInputObserver(Observer):
    """Emits FID (processing start minus event start) per input entry."""

    entry_type = "first-input"

    def handle(
        self, entries: Sequence[FirstInputEntry], recorder: MetricRecorderPort
    ) -> None:
        for entry in entries:
            fid = entry.processing_start - entry.start_time
            recorder.record(
                "FID",
                fid,
                "timing",
                WebVitalExtra(rating=rating("FID", fid), event_type=entry.name),
            )
