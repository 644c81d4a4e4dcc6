"""Data models for metric snapshots and exported lines."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

# Derived statistic labels
COUNT = "count"
MAX = "max"
MEAN = "mean"
MIN = "min"
STDDEV = "stddev"
P50 = "p50"
P75 = "p75"
P95 = "p95"
P98 = "p98"
P99 = "p99"
P999 = "p999"
M1_RATE = "m1_rate"
M5_RATE = "m5_rate"
M15_RATE = "m15_rate"
MEAN_RATE = "mean_rate"

SAMPLING_LABELS: Tuple[str, ...] = (MAX, MEAN, MIN, STDDEV, P50, P75, P95, P98, P99, P999)
METERED_LABELS: Tuple[str, ...] = (COUNT, M1_RATE, M5_RATE, M15_RATE, MEAN_RATE)
HISTOGRAM_LABELS: Tuple[str, ...] = (COUNT,) + SAMPLING_LABELS
TIMER_LABELS: Tuple[str, ...] = SAMPLING_LABELS + METERED_LABELS

# Quantile positions for the percentile labels
QUANTILES: Dict[str, float] = {
    P50: 0.5,
    P75: 0.75,
    P95: 0.95,
    P98: 0.98,
    P99: 0.99,
    P999: 0.999,
}


class MetricKind(Enum):
    """Kinds of metric, in the order they are reported."""

    GAUGE = "gauge"
    COUNTER = "counter"
    HISTOGRAM = "histogram"
    METER = "meter"
    TIMER = "timer"


@dataclass(frozen=True)
class MetricSnapshot:
    """Immutable point-in-time read of one named metric.

    Only the fields relevant to ``kind`` are populated:
        - GAUGE: ``value``
        - COUNTER: ``count``
        - HISTOGRAM: ``count``, ``values``
        - METER: ``count``, ``rates``
        - TIMER: ``count``, ``values`` (seconds), ``rates``
    """

    name: str
    kind: MetricKind
    count: int = 0
    value: Any = None
    values: Tuple[Any, ...] = ()
    rates: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class DerivedValue:
    """A labelled scalar computed from a snapshot. Gauges carry no label."""

    label: Optional[str]
    value: Any


@dataclass(frozen=True)
class ExportLine:
    """One line of the plaintext protocol."""

    name: str
    value: str
    timestamp: int

    def __str__(self) -> str:
        return f"{self.name} {self.value} {self.timestamp}\n"


@dataclass(frozen=True)
class RegistrySnapshot:
    """Consistent read of a whole registry, partitioned by kind and sorted by name."""

    gauges: Dict[str, MetricSnapshot] = field(default_factory=dict)
    counters: Dict[str, MetricSnapshot] = field(default_factory=dict)
    histograms: Dict[str, MetricSnapshot] = field(default_factory=dict)
    meters: Dict[str, MetricSnapshot] = field(default_factory=dict)
    timers: Dict[str, MetricSnapshot] = field(default_factory=dict)

    def by_kind(self) -> Tuple[Tuple[MetricKind, Dict[str, MetricSnapshot]], ...]:
        """Return the partitions in reporting order."""
        return (
            (MetricKind.GAUGE, self.gauges),
            (MetricKind.COUNTER, self.counters),
            (MetricKind.HISTOGRAM, self.histograms),
            (MetricKind.METER, self.meters),
            (MetricKind.TIMER, self.timers),
        )

    def __len__(self) -> int:
        return sum(len(metrics) for _, metrics in self.by_kind())
