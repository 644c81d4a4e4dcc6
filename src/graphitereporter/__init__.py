"""graphitereporter: periodic export of in-process metrics to Graphite."""

from .export import (
    ALL,
    DEFAULT,
    EntryFilter,
    ExcludeSetFilter,
    GraphiteReporter,
    GraphiteSink,
    LineSink,
    MetricNameTransform,
    OnlyFlattenLastTransform,
    PrefixStripSuffixTransform,
)
from .metrics import MetricRegistry
from .orchestration import CommonGraphiteReporter, SimpleGraphiteReporter, create_reporter
from .utils.config_validator import ConfigurationError, ReporterConfig

__version__ = "0.1.0"

__all__ = [
    "ALL",
    "DEFAULT",
    "CommonGraphiteReporter",
    "ConfigurationError",
    "EntryFilter",
    "ExcludeSetFilter",
    "GraphiteReporter",
    "GraphiteSink",
    "LineSink",
    "MetricNameTransform",
    "MetricRegistry",
    "OnlyFlattenLastTransform",
    "PrefixStripSuffixTransform",
    "ReporterConfig",
    "SimpleGraphiteReporter",
    "create_reporter",
]
