"""Reporter presets: set up a scheduled Graphite reporter from configuration."""

import json
import logging
import socket
from typing import Any, Dict, Optional, Type

import yaml

from ..export.filters import ALL, DEFAULT, EntryFilter, ExcludeSetFilter
from ..export.reporter import GraphiteReporter
from ..export.sinks import GraphiteSink, LineSink
from ..export.transforms import (
    NO_TRANSFORM,
    MetricNameTransform,
    OnlyFlattenLastTransform,
    PrefixStripSuffixTransform,
)
from ..metrics.registry import MetricRegistry
from ..utils.config_validator import (
    ConfigurationError,
    NameTransformConfig,
    ReporterConfig,
    build_config,
)

logger = logging.getLogger(__name__)

UNKNOWN_HOST = "unknown"


def cleanup_host_name(hostname: str) -> str:
    """Replace the dots of a host name with underscores.

    Graphite makes a tree node for each dot, which is never wanted inside a
    host name.
    """
    return hostname.replace(".", "_")


def resolve_local_host() -> str:
    """Return the local host name, or ``"unknown"`` when it cannot be resolved.

    The name must resolve to an address; an unresolvable name is treated as
    unknown.
    """
    try:
        hostname = socket.gethostname()
        if hostname:
            socket.gethostbyname(hostname)
    except OSError as e:
        logger.warning(f"Unable to resolve the local host name, using '{UNKNOWN_HOST}': {e}")
        return UNKNOWN_HOST
    if not hostname:
        logger.warning(f"Local host name is empty, using '{UNKNOWN_HOST}'")
        return UNKNOWN_HOST
    return hostname


def build_entry_filter(send_filter: Any) -> EntryFilter:
    """Build an EntryFilter from its configured form (None, "default", "all" or excludes)."""
    if send_filter is None or send_filter == "default":
        return DEFAULT
    if send_filter == "all":
        return ALL
    return ExcludeSetFilter(send_filter)


def build_name_transform(transform_config: NameTransformConfig) -> MetricNameTransform:
    """Build a MetricNameTransform from its configured form."""
    if transform_config.type == "none":
        return NO_TRANSFORM
    transform_class = (
        OnlyFlattenLastTransform if transform_config.type == "flatten_last"
        else PrefixStripSuffixTransform
    )
    return transform_class(
        transform_config.prefix,
        list(transform_config.strip_prefixes),
        transform_config.suffix,
    )


class SimpleGraphiteReporter:
    """Graphite reporter that appends the local host name as a suffix.

    Exported names look like ``<prefix>.<metric>_<stat>.<host>``.
    """

    def __init__(
        self,
        registry: MetricRegistry,
        config: Optional[ReporterConfig] = None,
        transform: Optional[MetricNameTransform] = None,
        send_filter: Optional[EntryFilter] = None,
        sink: Optional[LineSink] = None,
    ):
        """Initialize the preset. Nothing is started until :meth:`init`.

        Args:
            registry: Registry to report
            config: Reporter settings (defaults apply when omitted)
            transform: Overrides both the configured and the default transform
            send_filter: Overrides the configured send filter
            sink: Overrides the TCP sink built from ``host``/``port``
        """
        if registry is None:
            raise ConfigurationError("A metric registry is required")
        self.registry = registry
        self.config = config if config is not None else ReporterConfig()
        self.transform = transform
        self.send_filter = send_filter
        self.sink = sink
        self.host: Optional[str] = None
        self.prefix: Optional[str] = self.config.prefix
        self.reporter: Optional[GraphiteReporter] = None

    def _resolve_host(self) -> str:
        if self.config.local_host:
            return self.config.local_host
        return cleanup_host_name(resolve_local_host())

    def _default_transform(self) -> MetricNameTransform:
        return OnlyFlattenLastTransform(self.prefix, list(self.config.strip_prefixes), self.host)

    def build_reporter(self) -> GraphiteReporter:
        """Resolve host, transform, filter and sink into an unstarted reporter."""
        self.host = self._resolve_host()

        if self.transform is None:
            if self.config.name_transform is not None:
                self.transform = build_name_transform(self.config.name_transform)
            else:
                self.transform = self._default_transform()
        if self.send_filter is None:
            self.send_filter = build_entry_filter(self.config.send_filter)
        if self.sink is None:
            self.sink = GraphiteSink(self.config.host, self.config.port, self.config.connect_timeout_seconds)

        return GraphiteReporter(
            self.registry,
            self.sink,
            rate_unit=self.config.rate_unit,
            duration_unit=self.config.duration_unit,
            send_filter=self.send_filter,
            transform=self.transform,
        )

    def init(self) -> None:
        """Build the reporter and start reporting every ``period_seconds``."""
        if not self.config.enabled:
            logger.info("Graphite reporting is disabled")
            return
        if self.reporter is not None:
            raise RuntimeError("Reporter has already been initialized")

        self.reporter = self.build_reporter()
        self.reporter.start(self.config.period_seconds)
        logger.info(
            f"Reporting to Graphite at {self.config.host}:{self.config.port} "
            f"every {self.config.period_seconds}s using {self.transform!r}"
        )

    def close(self) -> None:
        """Stop the reporter if it was started."""
        if self.reporter is not None:
            self.reporter.close()

    def __enter__(self):
        self.init()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @classmethod
    def from_dict(cls, registry: MetricRegistry, config_data: Dict[str, Any], **kwargs):
        """Create a preset from a settings dict, optionally nested under "graphite"."""
        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration must be a mapping, got {type(config_data).__name__}")
        if isinstance(config_data.get("graphite"), dict):
            config_data = config_data["graphite"]
        return cls(registry, build_config(config_data), **kwargs)

    @classmethod
    def from_yaml_file(cls, registry: MetricRegistry, config_path: str, **kwargs):
        """Create a preset from a YAML configuration file.

        Args:
            registry: Registry to report
            config_path: Path to YAML configuration file

        Returns:
            Preset instance (not yet initialized)
        """
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
        return cls.from_dict(registry, config_data, **kwargs)

    @classmethod
    def from_json_file(cls, registry: MetricRegistry, config_path: str, **kwargs):
        with open(config_path, "r") as f:
            config_data = json.load(f)
        return cls.from_dict(registry, config_data, **kwargs)


class CommonGraphiteReporter(SimpleGraphiteReporter):
    """Graphite reporter that puts cluster and host in front of every name.

    Exported names look like ``<cluster>.<host>.<metric>_<stat>``; without a
    cluster name, ``<host>.<metric>_<stat>``. The configured ``prefix`` is
    replaced by the derived one.
    """

    def _resolve_host(self) -> str:
        return cleanup_host_name(self.config.local_host or resolve_local_host())

    def _default_transform(self) -> MetricNameTransform:
        if self.config.cluster_name:
            self.prefix = f"{self.config.cluster_name}.{self.host}"
        else:
            self.prefix = self.host
        return OnlyFlattenLastTransform(self.prefix, list(self.config.strip_prefixes), None)


PRESETS: Dict[str, Type[SimpleGraphiteReporter]] = {
    "cluster": CommonGraphiteReporter,
    "host_suffix": SimpleGraphiteReporter,
}


def create_reporter(registry: MetricRegistry, config: ReporterConfig, **kwargs) -> SimpleGraphiteReporter:
    """Create the preset named by ``config.preset``."""
    return PRESETS[config.preset](registry, config, **kwargs)
