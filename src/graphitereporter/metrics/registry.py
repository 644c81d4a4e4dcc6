"""Thread-safe in-process metric registry.

Provides the five metric types the reporter understands and a registry that
can be read as a consistent, name-sorted :class:`RegistrySnapshot` by any
number of concurrent readers.
"""

import logging
import math
import threading
import time
from collections import deque
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .models import (
    M1_RATE,
    M5_RATE,
    M15_RATE,
    MEAN_RATE,
    MetricKind,
    MetricSnapshot,
    RegistrySnapshot,
)

logger = logging.getLogger(__name__)

DEFAULT_RESERVOIR_SIZE = 1028
TICK_INTERVAL_S = 5.0


class Counter:
    """An incrementing and decrementing count."""

    kind = MetricKind.COUNTER

    def __init__(self):
        self._count = 0
        self._lock = threading.Lock()

    def inc(self, n: int = 1) -> None:
        with self._lock:
            self._count += n

    def dec(self, n: int = 1) -> None:
        with self._lock:
            self._count -= n

    @property
    def count(self) -> int:
        return self._count

    def snapshot(self, name: str) -> MetricSnapshot:
        return MetricSnapshot(name=name, kind=self.kind, count=self._count)


class Gauge:
    """Reads an instantaneous value from a callable at snapshot time."""

    kind = MetricKind.GAUGE

    def __init__(self, value_fn: Callable[[], Any]):
        self._value_fn = value_fn

    @property
    def value(self) -> Any:
        return self._value_fn()

    def snapshot(self, name: str) -> MetricSnapshot:
        try:
            value = self._value_fn()
        except Exception as e:
            logger.debug(f"Gauge {name} could not be read: {e}")
            value = None
        return MetricSnapshot(name=name, kind=self.kind, value=value)


class Histogram:
    """Distribution of values over a sliding window of recent updates."""

    kind = MetricKind.HISTOGRAM

    def __init__(self, reservoir_size: int = DEFAULT_RESERVOIR_SIZE):
        self._count = 0
        self._reservoir: deque = deque(maxlen=reservoir_size)
        self._lock = threading.Lock()

    def update(self, value) -> None:
        with self._lock:
            self._count += 1
            self._reservoir.append(value)

    @property
    def count(self) -> int:
        return self._count

    def snapshot(self, name: str) -> MetricSnapshot:
        with self._lock:
            count = self._count
            values = tuple(sorted(self._reservoir))
        return MetricSnapshot(name=name, kind=self.kind, count=count, values=values)


class EWMA:
    """Exponentially weighted moving average of a per-second rate.

    Ticked every ``TICK_INTERVAL_S`` seconds by its owning meter.
    """

    def __init__(self, minutes: float, interval_s: float = TICK_INTERVAL_S):
        self.alpha = 1.0 - math.exp(-interval_s / 60.0 / minutes)
        self.interval_s = interval_s
        self._uncounted = 0
        self._rate = 0.0
        self._initialized = False

    def update(self, n: int) -> None:
        self._uncounted += n

    def tick(self) -> None:
        instant_rate = self._uncounted / self.interval_s
        self._uncounted = 0
        if self._initialized:
            self._rate += self.alpha * (instant_rate - self._rate)
        else:
            self._rate = instant_rate
            self._initialized = True

    @property
    def rate(self) -> float:
        return self._rate


class Meter:
    """Marks events and tracks mean and 1/5/15-minute rates per second."""

    kind = MetricKind.METER

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._count = 0
        self._start = clock()
        self._last_tick = self._start
        self._m1 = EWMA(1)
        self._m5 = EWMA(5)
        self._m15 = EWMA(15)
        self._lock = threading.Lock()

    def mark(self, n: int = 1) -> None:
        with self._lock:
            self._tick_if_necessary()
            self._count += n
            for ewma in (self._m1, self._m5, self._m15):
                ewma.update(n)

    def _tick_if_necessary(self) -> None:
        now = self._clock()
        age = now - self._last_tick
        if age > TICK_INTERVAL_S:
            self._last_tick = now - (age % TICK_INTERVAL_S)
            for _ in range(int(age // TICK_INTERVAL_S)):
                for ewma in (self._m1, self._m5, self._m15):
                    ewma.tick()

    @property
    def count(self) -> int:
        return self._count

    def rates(self) -> Dict[str, float]:
        """Current rates in events per second."""
        with self._lock:
            return self._rates()

    def _rates(self) -> Dict[str, float]:
        self._tick_if_necessary()
        elapsed = self._clock() - self._start
        mean_rate = self._count / elapsed if self._count and elapsed > 0 else 0.0
        return {
            M1_RATE: self._m1.rate,
            M5_RATE: self._m5.rate,
            M15_RATE: self._m15.rate,
            MEAN_RATE: mean_rate,
        }

    def count_and_rates(self) -> Tuple[int, Dict[str, float]]:
        """Count and rates read under one lock."""
        with self._lock:
            return self._count, self._rates()

    def snapshot(self, name: str) -> MetricSnapshot:
        count, rates = self.count_and_rates()
        return MetricSnapshot(name=name, kind=self.kind, count=count, rates=rates)


class Timer:
    """Histogram of durations (in seconds) plus a meter of their rate."""

    kind = MetricKind.TIMER

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        reservoir_size: int = DEFAULT_RESERVOIR_SIZE,
    ):
        self._clock = clock
        self._histogram = Histogram(reservoir_size)
        self._meter = Meter(clock)

    def update(self, duration_s: float) -> None:
        if duration_s < 0:
            return
        self._histogram.update(duration_s)
        self._meter.mark()

    @contextmanager
    def time(self) -> Iterator[None]:
        """Time the enclosed block."""
        start = self._clock()
        try:
            yield
        finally:
            self.update(self._clock() - start)

    @property
    def count(self) -> int:
        return self._meter.count

    def snapshot(self, name: str) -> MetricSnapshot:
        histogram = self._histogram.snapshot(name)
        count, rates = self._meter.count_and_rates()
        return MetricSnapshot(
            name=name,
            kind=self.kind,
            count=count,
            values=histogram.values,
            rates=rates,
        )


class MetricRegistry:
    """Named collection of metrics.

    Registration is guarded by a lock; each metric guards its own state, so
    :meth:`snapshot` may be called concurrently by several reporters.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()

    @staticmethod
    def name(*parts: Optional[str]) -> str:
        """Join the non-empty parts of a metric name with dots."""
        return ".".join(part for part in parts if part)

    def register(self, name: str, metric: Any) -> Any:
        """Register a metric under ``name``; names must be unique."""
        with self._lock:
            if name in self._metrics:
                raise ValueError(f"A metric named {name} already exists")
            self._metrics[name] = metric
        logger.debug(f"Registered {metric.kind.value} {name}")
        return metric

    def remove(self, name: str) -> bool:
        with self._lock:
            return self._metrics.pop(name, None) is not None

    def _get_or_add(self, name: str, factory: Callable[[], Any], kind: MetricKind) -> Any:
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                metric = factory()
                self._metrics[name] = metric
            elif metric.kind is not kind:
                raise ValueError(f"{name} is already used for a {metric.kind.value}")
            return metric

    def counter(self, name: str) -> Counter:
        return self._get_or_add(name, Counter, MetricKind.COUNTER)

    def histogram(self, name: str) -> Histogram:
        return self._get_or_add(name, Histogram, MetricKind.HISTOGRAM)

    def meter(self, name: str) -> Meter:
        return self._get_or_add(name, lambda: Meter(self._clock), MetricKind.METER)

    def timer(self, name: str) -> Timer:
        return self._get_or_add(name, lambda: Timer(self._clock), MetricKind.TIMER)

    def gauge(self, name: str, value_fn: Callable[[], Any]) -> Gauge:
        return self._get_or_add(name, lambda: Gauge(value_fn), MetricKind.GAUGE)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._metrics)

    def __len__(self) -> int:
        return len(self._metrics)

    def snapshot(self) -> RegistrySnapshot:
        """Take a name-sorted snapshot of every registered metric."""
        with self._lock:
            metrics = sorted(self._metrics.items())

        partitions: Dict[MetricKind, Dict[str, MetricSnapshot]] = {
            kind: {} for kind in MetricKind
        }
        for name, metric in metrics:
            partitions[metric.kind][name] = metric.snapshot(name)

        return RegistrySnapshot(
            gauges=partitions[MetricKind.GAUGE],
            counters=partitions[MetricKind.COUNTER],
            histograms=partitions[MetricKind.HISTOGRAM],
            meters=partitions[MetricKind.METER],
            timers=partitions[MetricKind.TIMER],
        )
