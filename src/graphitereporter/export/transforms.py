"""Metric name transforms.

Graphite builds a tree node for every ``.`` in a metric name. These
transforms inject a prefix/suffix (cluster, host), strip noisy leading
package names and flatten separators so the tree stays browsable.
"""

from typing import List, Optional


class MetricNameTransform:
    """Identity transform; subclasses rewrite the name."""

    def transform(self, metric_name: str) -> str:
        return metric_name

    def __call__(self, metric_name: str) -> str:
        return self.transform(metric_name)


NO_TRANSFORM = MetricNameTransform()


class PrefixStripSuffixTransform(MetricNameTransform):
    """Prepend a prefix, strip a known leading name, flatten every remaining dot.

    Example:
        >>> t = PrefixStripSuffixTransform("prod", ["com.example"], "web1")
        >>> t.transform("com.example.db.queries.p99")
        'prod.db_queries_p99.web1'
    """

    def __init__(
        self,
        prefix: Optional[str] = None,
        to_strip: Optional[List[str]] = None,
        suffix: Optional[str] = None,
    ):
        self.prefix = (prefix or "").strip()
        self.suffix = (suffix or "").strip()
        self.to_strip = tuple(strip.strip() for strip in (to_strip or []))

    def transform(self, metric_name: str) -> str:
        out = []
        if self.prefix:
            out.append(self.prefix)
        out.append(self.clean_metric_name(metric_name))
        if self.suffix:
            out.append(self.suffix)
        return ".".join(out)

    def strip_name(self, metric_name: str) -> str:
        """Remove the first matching strip prefix and any leading dots."""
        clean = metric_name
        for strip in self.to_strip:
            if clean.startswith(strip):
                clean = clean[len(strip):]
                break
        return clean.lstrip(".")

    def clean_metric_name(self, metric_name: str) -> str:
        return self.strip_name(metric_name).replace(".", "_")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(prefix={self.prefix!r}, "
            f"to_strip={list(self.to_strip)!r}, suffix={self.suffix!r})"
        )


class OnlyFlattenLastTransform(PrefixStripSuffixTransform):
    """Like :class:`PrefixStripSuffixTransform` but only the last dot becomes ``_``.

    Keeps the metric's own hierarchy browsable while folding the statistic
    label into the leaf, e.g. ``a.b.requests.p99`` -> ``a.b.requests_p99``.
    """

    def clean_metric_name(self, metric_name: str) -> str:
        clean = self.strip_name(metric_name)
        head, sep, tail = clean.rpartition(".")
        if not sep:
            return clean
        return f"{head}_{tail}"
