"""Metric registry, snapshots and derived statistics."""

from .derivation import derive
from .models import DerivedValue, ExportLine, MetricKind, MetricSnapshot, RegistrySnapshot
from .registry import Counter, Gauge, Histogram, Meter, MetricRegistry, Timer

__all__ = [
    "Counter",
    "DerivedValue",
    "ExportLine",
    "Gauge",
    "Histogram",
    "Meter",
    "MetricKind",
    "MetricRegistry",
    "MetricSnapshot",
    "RegistrySnapshot",
    "Timer",
    "derive",
]
