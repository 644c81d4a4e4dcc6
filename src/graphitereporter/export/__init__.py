"""Export pipeline: name transforms, entry filters, formatting, sinks and the reporter."""

from .filters import ALL, DEFAULT, DEFAULT_EXCLUDES, EntryFilter, ExcludeSetFilter
from .formatting import format_value
from .reporter import GraphiteReporter
from .sinks import GraphiteSink, LineSink, RecordingSink
from .transforms import (
    NO_TRANSFORM,
    MetricNameTransform,
    OnlyFlattenLastTransform,
    PrefixStripSuffixTransform,
)

__all__ = [
    "ALL",
    "DEFAULT",
    "DEFAULT_EXCLUDES",
    "EntryFilter",
    "ExcludeSetFilter",
    "GraphiteReporter",
    "GraphiteSink",
    "LineSink",
    "MetricNameTransform",
    "NO_TRANSFORM",
    "OnlyFlattenLastTransform",
    "PrefixStripSuffixTransform",
    "RecordingSink",
    "format_value",
]
