"""Pipeline runtime."""

from perfmon.runtime.pipeline import MetricsPipeline, PerformanceReport

__all__ = ["MetricsPipeline", "PerformanceReport"]
