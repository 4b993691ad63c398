"""Pipeline configuration."""

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class PipelineConfig:
    """Tuning knobs for MetricsPipeline.

    Attributes:
        batch_size: Queue length that triggers an immediate flush.
        flush_interval: Seconds between timer-driven flushes.
        delivery_timeout: Seconds before a pending write counts as failed.
        max_queue_size: Queue bound; the oldest metrics are dropped beyond it.
        navigation_delay: Seconds to wait after load before reading
            navigation timing.
        beacon_url: Target of the fire-and-forget unload delivery.
        api_path_marker: URL substring identifying instrumented API calls.
        api_hosts: Backend host fragments whose calls are instrumented.
        report_window: How far back the performance report reads.
    """

    batch_size: int = 10
    flush_interval: float = 30.0
    delivery_timeout: float = 10.0
    max_queue_size: int = 1000
    navigation_delay: float = 1.0
    beacon_url: str = "/api/performance-metrics"
    api_path_marker: str = "/api/"
    api_hosts: tuple[str, ...] = ("supabase.co",)
    report_window: timedelta = timedelta(hours=24)

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.max_queue_size < self.batch_size:
            raise ValueError("max_queue_size must be >= batch_size")
        if self.flush_interval <= 0:
            raise ValueError("flush_interval must be positive")
        if self.delivery_timeout <= 0:
            raise ValueError("delivery_timeout must be positive")
        if self.navigation_delay < 0:
            raise ValueError("navigation_delay must not be negative")
