"""Sink adapters implementing core ports."""

from perfmon.adapters.sinks.in_memory import InMemoryMetricSink
from perfmon.adapters.sinks.rest import RestMetricSink
from perfmon.adapters.sinks.sqlite import SQLiteMetricSink

__all__ = [
    "InMemoryMetricSink",
    "RestMetricSink",
    "SQLiteMetricSink",
]
