"""Entry filters decide which derived statistics are sent.

Metrics expose many statistics (p98, m15_rate, ...) that are rarely worth
their storage in Graphite. A filter is consulted once per label.
"""

from typing import FrozenSet, Iterable

from ..metrics.models import M15_RATE, MAX, MEAN, MEAN_RATE, MIN, P75, P98, STDDEV

DEFAULT_EXCLUDES: FrozenSet[str] = frozenset({
    # min and max are not graphable
    MAX, MIN,
    # that rate is so 15 minutes ago
    M15_RATE,
    # means barely move once enough events have been seen
    MEAN_RATE, MEAN, STDDEV,
    # uninteresting percentiles
    P75, P98,
})


class EntryFilter:
    """Accepts every label."""

    def should_send(self, label: str) -> bool:
        """
        Args:
            label: The last part of the stat name (count, mean, p95, ...)

        Returns:
            True to send the entry, False to drop it
        """
        return True

    def __call__(self, label: str) -> bool:
        return self.should_send(label)


class ExcludeSetFilter(EntryFilter):
    """Drops every label in a fixed exclude set."""

    def __init__(self, excludes: Iterable[str]):
        self.excludes: FrozenSet[str] = frozenset(excludes)

    def should_send(self, label: str) -> bool:
        return label not in self.excludes

    def __repr__(self) -> str:
        return f"ExcludeSetFilter({sorted(self.excludes)!r})"


ALL = EntryFilter()
DEFAULT = ExcludeSetFilter(DEFAULT_EXCLUDES)
