"""Derivation of labelled statistics from metric snapshots."""

from typing import Callable, Dict, List

import numpy as np

from .models import (
    COUNT,
    MAX,
    MEAN,
    METERED_LABELS,
    MIN,
    QUANTILES,
    STDDEV,
    DerivedValue,
    MetricKind,
    MetricSnapshot,
)


def sampling_stats(values, scale: float = 1.0) -> Dict[str, object]:
    """Calculate max/mean/min/stddev and percentiles of sorted samples.

    Percentiles use the ``(n + 1) * q`` interpolation position, clamped to the
    first and last samples. Stddev is the sample standard deviation.

    Args:
        values: Sorted sample values
        scale: Factor applied to every statistic (e.g. seconds -> milliseconds)
    """
    if len(values) == 0:
        stats = {MAX: 0, MEAN: 0.0, MIN: 0, STDDEV: 0.0}
        stats.update({label: 0.0 for label in QUANTILES})
        return stats

    samples = np.asarray(values)
    if scale != 1.0:
        samples = samples * scale

    stats = {
        MAX: samples.max(),
        MEAN: samples.mean(),
        MIN: samples.min(),
        STDDEV: samples.std(ddof=1) if len(samples) > 1 else 0.0,
    }
    for label, q in QUANTILES.items():
        stats[label] = np.percentile(samples, q * 100, method="weibull")
    return stats


def _derive_gauge(snapshot: MetricSnapshot, duration_scale: float, rate_scale: float) -> List[DerivedValue]:
    return [DerivedValue(None, snapshot.value)]


def _derive_counter(snapshot: MetricSnapshot, duration_scale: float, rate_scale: float) -> List[DerivedValue]:
    return [DerivedValue(COUNT, snapshot.count)]


def _derive_histogram(snapshot: MetricSnapshot, duration_scale: float, rate_scale: float) -> List[DerivedValue]:
    stats = sampling_stats(snapshot.values)
    derived = [DerivedValue(COUNT, snapshot.count)]
    derived.extend(DerivedValue(label, value) for label, value in stats.items())
    return derived


def _derive_metered(snapshot: MetricSnapshot, rate_scale: float) -> List[DerivedValue]:
    derived = [DerivedValue(COUNT, snapshot.count)]
    for label in METERED_LABELS[1:]:
        derived.append(DerivedValue(label, float(snapshot.rates.get(label, 0.0)) * rate_scale))
    return derived


def _derive_meter(snapshot: MetricSnapshot, duration_scale: float, rate_scale: float) -> List[DerivedValue]:
    return _derive_metered(snapshot, rate_scale)


def _derive_timer(snapshot: MetricSnapshot, duration_scale: float, rate_scale: float) -> List[DerivedValue]:
    # Durations are always reported as floats, even for integral samples
    stats = sampling_stats(snapshot.values, duration_scale)
    derived = [DerivedValue(label, float(value)) for label, value in stats.items()]
    derived.extend(_derive_metered(snapshot, rate_scale))
    return derived


DERIVATIONS: Dict[MetricKind, Callable[[MetricSnapshot, float, float], List[DerivedValue]]] = {
    MetricKind.GAUGE: _derive_gauge,
    MetricKind.COUNTER: _derive_counter,
    MetricKind.HISTOGRAM: _derive_histogram,
    MetricKind.METER: _derive_meter,
    MetricKind.TIMER: _derive_timer,
}


def derive(snapshot: MetricSnapshot, duration_scale: float = 1.0, rate_scale: float = 1.0) -> List[DerivedValue]:
    """Derive the labelled values of a snapshot, in reporting order.

    Args:
        snapshot: Snapshot to derive from
        duration_scale: Multiplier converting timer durations from seconds
        rate_scale: Multiplier converting rates from events per second

    Returns:
        DerivedValue list; a gauge yields a single unlabeled value
    """
    return DERIVATIONS[snapshot.kind](snapshot, duration_scale, rate_scale)
