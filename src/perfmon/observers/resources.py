"""Resource timing observer."""

from collections.abc import Sequence

from perfmon.core.entries import ResourceEntry
from perfmon.core.models import ResourceTimingExtra
from perfmon.core.ports import MetricRecorderPort
from perfmon.core.resources import infer_resource_type, is_significant_resource
from perfmon.observers.base import Observer


class ResourceTimingObserver(Observer):
    """Emits resource_timing for slow or large resource loads only."""

    entry_type = "resource"

    def handle(
        self, entries: Sequence[ResourceEntry], recorder: MetricRecorderPort
    ) -> None:
        for entry in entries:
            if not is_significant_resource(entry.duration, entry.transfer_size):
                continue
            recorder.record(
                "resource_timing",
                entry.duration,
                "resource",
                ResourceTimingExtra(
                    resource_name=entry.name,
                    resource_type=infer_resource_type(entry.name),
                    transfer_size=entry.transfer_size,
                    encoded_size=entry.encoded_body_size,
                    decoded_size=entry.decoded_body_size,
                ),
            )
