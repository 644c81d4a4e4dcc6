"""
Unit tests for the reporter presets and their default name transforms.
"""

import socket

import pytest
import yaml

from graphitereporter.export.filters import ALL, DEFAULT, ExcludeSetFilter
from graphitereporter.export.sinks import GraphiteSink, RecordingSink
from graphitereporter.export.transforms import (
    NO_TRANSFORM,
    OnlyFlattenLastTransform,
    PrefixStripSuffixTransform,
)
from graphitereporter.metrics import MetricRegistry
from graphitereporter.orchestration import CommonGraphiteReporter, SimpleGraphiteReporter, create_reporter
from graphitereporter.orchestration.reporter_presets import (
    build_entry_filter,
    cleanup_host_name,
    resolve_local_host,
)
from graphitereporter.utils.config_validator import ConfigurationError, ReporterConfig, build_config

METRIC_NAME = "com.example.db.queries.p99"


@pytest.fixture
def local_host(monkeypatch):
    monkeypatch.setattr(socket, "gethostname", lambda: "web1.example.com")
    monkeypatch.setattr(socket, "gethostbyname", lambda name: "10.0.0.1")


class TestHostNames:
    """Test local host name handling."""

    def test_cleanup_host_name(self):
        """Test that dots in host names become underscores."""
        assert cleanup_host_name("web1.example.com") == "web1_example_com"

    def test_unresolvable_host_falls_back(self, monkeypatch):
        """Test the 'unknown' fallback when the host name cannot be read."""
        def fail():
            raise OSError("no host name")

        monkeypatch.setattr(socket, "gethostname", fail)
        assert resolve_local_host() == "unknown"

    def test_name_without_address_falls_back(self, monkeypatch):
        """Test the 'unknown' fallback when the host name has no address."""
        def no_address(name):
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        monkeypatch.setattr(socket, "gethostname", lambda: "orphan")
        monkeypatch.setattr(socket, "gethostbyname", no_address)
        assert resolve_local_host() == "unknown"

    def test_resolvable_host(self, local_host):
        """Test that a resolvable host name is returned as is."""
        assert resolve_local_host() == "web1.example.com"


class TestCommonGraphiteReporter:
    """Test the cluster preset."""

    def test_cluster_and_host_prefix(self, local_host):
        """Test prefix = cluster + cleaned host, last-only flatten, no suffix."""
        config = build_config({"cluster_name": "production", "strip_prefixes": ["com.example"]})
        preset = CommonGraphiteReporter(MetricRegistry(), config, sink=RecordingSink())
        preset.build_reporter()

        assert preset.host == "web1_example_com"
        assert preset.prefix == "production.web1_example_com"
        assert isinstance(preset.transform, OnlyFlattenLastTransform)
        assert preset.transform.transform(METRIC_NAME) == "production.web1_example_com.db.queries_p99"

    def test_host_only_prefix(self, local_host):
        """Test that without a cluster the host alone is the prefix."""
        preset = CommonGraphiteReporter(MetricRegistry(), ReporterConfig(), sink=RecordingSink())
        preset.build_reporter()
        assert preset.transform.transform("a.b") == "web1_example_com.a_b"

    def test_configured_host_cleaned(self):
        """Test that an explicitly configured local host is cleaned too."""
        config = build_config({"local_host": "db.internal"})
        preset = CommonGraphiteReporter(MetricRegistry(), config, sink=RecordingSink())
        preset.build_reporter()
        assert preset.host == "db_internal"


class TestSimpleGraphiteReporter:
    """Test the host suffix preset."""

    def test_host_as_suffix(self, local_host):
        """Test prefix from configuration and the cleaned host as suffix."""
        config = build_config({"preset": "host_suffix", "prefix": "production"})
        preset = create_reporter(MetricRegistry(), config, sink=RecordingSink())
        preset.build_reporter()

        assert isinstance(preset, SimpleGraphiteReporter)
        assert not isinstance(preset, CommonGraphiteReporter)
        assert preset.transform.transform("a.b.c") == "production.a.b_c.web1_example_com"

    def test_configured_host_kept(self):
        """Test that an explicitly configured local host is used verbatim."""
        config = build_config({"preset": "host_suffix", "local_host": "db.internal"})
        preset = create_reporter(MetricRegistry(), config, sink=RecordingSink())
        preset.build_reporter()
        assert preset.transform.transform("a.b") == "a_b.db.internal"


class TestPresetConfiguration:
    """Test how presets turn configuration into collaborators."""

    def test_missing_registry(self):
        """Test that a missing registry is fatal at setup."""
        with pytest.raises(ConfigurationError):
            CommonGraphiteReporter(None)

    def test_default_sink_and_filter(self, local_host):
        """Test the TCP sink and default filter built from configuration."""
        config = build_config({"host": "graphite.example.com", "port": 2004})
        preset = create_reporter(MetricRegistry(), config)
        reporter = preset.build_reporter()
        assert isinstance(reporter.sink, GraphiteSink)
        assert (reporter.sink.host, reporter.sink.port) == ("graphite.example.com", 2004)
        assert reporter.send_filter is DEFAULT

    @pytest.mark.parametrize("configured, expected", [
        (None, DEFAULT),
        ("default", DEFAULT),
        ("all", ALL),
    ])
    def test_standing_filters(self, configured, expected):
        """Test the named send filters."""
        assert build_entry_filter(configured) is expected

    def test_exclude_list_filter(self):
        """Test that an exclude list becomes an ExcludeSetFilter."""
        send_filter = build_entry_filter(("p99",))
        assert isinstance(send_filter, ExcludeSetFilter)
        assert not send_filter.should_send("p99")
        assert send_filter.should_send("max")

    @pytest.mark.parametrize("transform_type, expected_class", [
        ("flatten_last", OnlyFlattenLastTransform),
        ("flatten_all", PrefixStripSuffixTransform),
    ])
    def test_configured_transform(self, local_host, transform_type, expected_class):
        """Test that a configured transform replaces the preset default."""
        config = build_config({
            "cluster_name": "ignored",
            "name_transform": {"type": transform_type, "prefix": "p", "strip_prefixes": ["x"]},
        })
        preset = create_reporter(MetricRegistry(), config, sink=RecordingSink())
        preset.build_reporter()
        assert type(preset.transform) is expected_class
        assert preset.transform.prefix == "p"

    def test_no_transform(self):
        """Test the identity transform option."""
        config = build_config({"name_transform": {"type": "none"}})
        preset = create_reporter(MetricRegistry(), config, sink=RecordingSink())
        preset.build_reporter()
        assert preset.transform is NO_TRANSFORM

    def test_explicit_objects_win(self, local_host):
        """Test that transform and filter objects override the configuration."""
        transform = OnlyFlattenLastTransform("custom")
        config = build_config({"send_filter": "all"})
        preset = create_reporter(
            MetricRegistry(), config, transform=transform, send_filter=DEFAULT, sink=RecordingSink()
        )
        reporter = preset.build_reporter()
        assert reporter.transform is transform
        assert reporter.send_filter is DEFAULT

    def test_disabled_does_nothing(self):
        """Test that init() with reporting disabled starts nothing."""
        preset = create_reporter(MetricRegistry(), build_config({"enabled": False}))
        preset.init()
        assert preset.reporter is None
        preset.close()

    def test_init_and_close(self, local_host):
        """Test the init/close lifecycle as a context manager."""
        sink = RecordingSink()
        config = build_config({"period_seconds": 3600})
        with create_reporter(MetricRegistry(), config, sink=sink) as preset:
            assert preset.reporter.is_running
            with pytest.raises(RuntimeError):
                preset.init()
        assert not preset.reporter.is_running

    def test_from_yaml_file(self, tmp_path, local_host):
        """Test creating a preset from a YAML file."""
        path = tmp_path / "graphite.yaml"
        path.write_text(yaml.dump({"graphite": {"host": "g", "cluster_name": "c"}}))
        preset = CommonGraphiteReporter.from_yaml_file(MetricRegistry(), str(path), sink=RecordingSink())
        preset.build_reporter()
        assert preset.config.host == "g"
        assert preset.prefix == "c.web1_example_com"
