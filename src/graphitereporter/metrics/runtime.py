"""Gauges describing the running Python process."""

import gc
import os
import sys
import threading
import time

from .registry import MetricRegistry

_START_TIME = time.time()


def register_runtime_metrics(registry: MetricRegistry, prefix: str = "process") -> None:
    """Register process-level gauges (threads, gc, uptime) on a registry."""
    registry.gauge(MetricRegistry.name(prefix, "uptime_seconds"), lambda: time.time() - _START_TIME)
    registry.gauge(MetricRegistry.name(prefix, "threads", "active"), threading.active_count)
    registry.gauge(MetricRegistry.name(prefix, "pid"), os.getpid)

    for generation in range(len(gc.get_count())):
        registry.gauge(
            MetricRegistry.name(prefix, "gc", f"gen{generation}", "pending"),
            lambda g=generation: gc.get_count()[g],
        )
    for generation in range(len(gc.get_stats())):
        registry.gauge(
            MetricRegistry.name(prefix, "gc", f"gen{generation}", "collections"),
            lambda g=generation: gc.get_stats()[g]["collections"],
        )

    # Not available on every platform
    if hasattr(os, "getloadavg"):
        registry.gauge(MetricRegistry.name(prefix, "load", "m1"), lambda: os.getloadavg()[0])

    registry.gauge(MetricRegistry.name(prefix, "modules", "loaded"), lambda: len(sys.modules))
