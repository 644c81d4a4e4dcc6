"""Reporter which publishes metric values to a Graphite server.

One report cycle connects the sink, emits one line per accepted derived
statistic of every metric, and always closes the sink. Transport failures
are confined to the cycle in which they happen.
"""

import logging
import threading
import time
from typing import Callable, Dict, Iterator, Optional

from ..core.schedule import ThreadedSchedule
from ..metrics.derivation import derive
from ..metrics.models import ExportLine, MetricSnapshot, RegistrySnapshot
from ..metrics.registry import MetricRegistry
from ..utils.config_validator import ConfigurationError
from .filters import DEFAULT, EntryFilter
from .formatting import format_value
from .sinks import LineSink
from .transforms import NO_TRANSFORM, MetricNameTransform

logger = logging.getLogger(__name__)

# Length of each time unit in seconds
TIME_UNITS: Dict[str, float] = {
    "nanoseconds": 1e-9,
    "microseconds": 1e-6,
    "milliseconds": 1e-3,
    "seconds": 1.0,
    "minutes": 60.0,
    "hours": 3600.0,
    "days": 86400.0,
}

MetricFilter = Callable[[str, MetricSnapshot], bool]


def _unit_seconds(unit: str) -> float:
    if unit not in TIME_UNITS:
        raise ConfigurationError(f"Unknown time unit: {unit}. Must be one of {list(TIME_UNITS)}")
    return TIME_UNITS[unit]


class GraphiteReporter:
    """Reports a registry to a line sink, once per call or on a schedule.

    Example:
        reporter = GraphiteReporter(registry, GraphiteSink("graphite", 2003),
                                    transform=OnlyFlattenLastTransform("prod.web1"))
        reporter.start(60)
        ...
        reporter.close()
    """

    def __init__(
        self,
        registry: MetricRegistry,
        sink: LineSink,
        clock: Callable[[], float] = time.time,
        rate_unit: str = "seconds",
        duration_unit: str = "milliseconds",
        send_filter: EntryFilter = DEFAULT,
        transform: MetricNameTransform = NO_TRANSFORM,
        metric_filter: Optional[MetricFilter] = None,
        name: str = "graphite-reporter",
    ):
        """Initialize the reporter.

        Args:
            registry: Registry whose snapshot is reported each cycle
            sink: Transport the lines are sent through
            clock: Returns the current unix time in seconds
            rate_unit: Rates are reported in events per this unit
            duration_unit: Timer durations are reported in this unit
            send_filter: Decides which derived statistics are sent
            transform: Turns raw metric names into exported names
            metric_filter: Decides which whole metrics are reported (default all)
            name: Name of the scheduling thread
        """
        if registry is None:
            raise ConfigurationError("A metric registry is required")
        if sink is None:
            raise ConfigurationError("A line sink is required")

        self.registry = registry
        self.sink = sink
        self.clock = clock
        self.rate_unit = rate_unit
        self.duration_unit = duration_unit
        self.send_filter = send_filter if send_filter is not None else DEFAULT
        self.transform = transform if transform is not None else NO_TRANSFORM
        self.metric_filter = metric_filter
        self.name = name

        self._rate_scale = _unit_seconds(rate_unit)
        self._duration_scale = 1.0 / _unit_seconds(duration_unit)
        self._cycle_lock = threading.Lock()
        self._schedule: Optional[ThreadedSchedule] = None

        self.cycles = 0
        self.failed_cycles = 0
        self.last_sent = 0

    def export_lines(self, snapshot: RegistrySnapshot, timestamp: int) -> Iterator[ExportLine]:
        """Yield the lines for a snapshot in reporting order.

        Kinds are reported gauges, counters, histograms, meters, timers;
        metrics alphabetically within a kind.
        """
        for _, metrics in snapshot.by_kind():
            for raw_name, metric in sorted(metrics.items()):
                if self.metric_filter is not None and not self.metric_filter(raw_name, metric):
                    continue
                for derived in derive(metric, self._duration_scale, self._rate_scale):
                    if derived.label is not None and not self.send_filter.should_send(derived.label):
                        continue
                    value = format_value(derived.value)
                    if value is None:
                        continue
                    name = self.transform.transform(MetricRegistry.name(raw_name, derived.label))
                    yield ExportLine(name, value, timestamp)

    def report(self, snapshot: Optional[RegistrySnapshot] = None, timestamp: Optional[int] = None) -> int:
        """Run one report cycle.

        Args:
            snapshot: Snapshot to report (default: a fresh registry snapshot)
            timestamp: Unix seconds stamped on every line (default: the clock)

        Returns:
            Number of lines sent
        """
        with self._cycle_lock:
            if snapshot is None:
                snapshot = self.registry.snapshot()
            if timestamp is None:
                timestamp = int(self.clock())
            return self._run_cycle(snapshot, timestamp)

    def _run_cycle(self, snapshot: RegistrySnapshot, timestamp: int) -> int:
        sent = 0
        self.cycles += 1
        try:
            try:
                self.sink.connect()
            except OSError as e:
                self.failed_cycles += 1
                logger.warning(f"Unable to connect to Graphite via {self.sink!r}: {e}")
                return 0

            try:
                for line in self.export_lines(snapshot, timestamp):
                    self.sink.send_line(line)
                    sent += 1
            except OSError as e:
                self.failed_cycles += 1
                logger.warning(f"Unable to report to Graphite via {self.sink!r} after {sent} line(s): {e}")
        finally:
            try:
                self.sink.close()
            except OSError as e:
                logger.debug(f"Error disconnecting from Graphite via {self.sink!r}: {e}")
            self.last_sent = sent

        logger.debug(f"Reported {sent} line(s) at {timestamp}")
        return sent

    def start(self, period_s: float, initial_delay_s: Optional[float] = None) -> None:
        """Report every ``period_s`` seconds on a dedicated thread.

        A stopped reporter may be started again.
        """
        if self._schedule is not None:
            raise RuntimeError(f"{self.name} has already been started")
        self._schedule = ThreadedSchedule(self.report, period_s, self.name, initial_delay_s)
        self._schedule.start()

    @property
    def is_running(self) -> bool:
        return self._schedule is not None and self._schedule.is_running

    def stop(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        """Stop scheduling; a cycle in flight is allowed to finish."""
        schedule, self._schedule = self._schedule, None
        if schedule is not None:
            schedule.stop(wait=wait, timeout=timeout)

    def close(self) -> None:
        self.stop(wait=True)

    def __enter__(self) -> "GraphiteReporter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
