"""
Unit tests for metric name transforms.
"""

import pytest

from graphitereporter.export.transforms import (
    NO_TRANSFORM,
    OnlyFlattenLastTransform,
    PrefixStripSuffixTransform,
)

METRIC_NAME = "io.teknek.graphite.util.totalErrors.p50"


class TestOnlyFlattenLastTransform:
    """Test last-only flattening."""

    def test_nulls(self):
        """Test that no prefix, strip or suffix only flattens the last dot."""
        trans = OnlyFlattenLastTransform(None, None, None)
        assert trans.transform(METRIC_NAME) == "io.teknek.graphite.util.totalErrors_p50"

    def test_cluster_and_host_up_front(self):
        """Test that a dotted prefix is kept as is in front of the name."""
        trans = OnlyFlattenLastTransform("production.web1", None, None)
        assert trans.transform(METRIC_NAME) == "production.web1.io.teknek.graphite.util.totalErrors_p50"

    def test_host_as_suffix(self):
        """Test that a suffix is appended after the flattened leaf."""
        trans = OnlyFlattenLastTransform("production", None, "web1")
        assert trans.transform("db.queries.p99") == "production.db.queries_p99.web1"

    def test_name_without_dots_unchanged(self):
        """Test that a dotless name passes through."""
        trans = OnlyFlattenLastTransform()
        assert trans.transform("uptime") == "uptime"

    def test_strip_then_flatten_last(self):
        """Test stripping a package prefix before flattening."""
        trans = OnlyFlattenLastTransform(None, ["io.teknek"], None)
        assert trans.transform(METRIC_NAME) == "graphite.util.totalErrors_p50"


class TestPrefixStripSuffixTransform:
    """Test full flattening with prefix, strip and suffix."""

    def test_full_flatten(self):
        """Test that every dot of the cleaned name becomes an underscore."""
        trans = PrefixStripSuffixTransform()
        assert trans.transform(METRIC_NAME) == "io_teknek_graphite_util_totalErrors_p50"

    def test_prefix_and_suffix_keep_their_dots(self):
        """Test that prefix and suffix are joined with dots and not flattened."""
        trans = PrefixStripSuffixTransform("prod.eu", None, "web1")
        assert trans.transform("a.b") == "prod.eu.a_b.web1"

    def test_idempotent_on_dotless_names(self):
        """Test that flattening a dotless name twice changes nothing."""
        trans = PrefixStripSuffixTransform()
        once = trans.transform("requests_count")
        assert once == "requests_count"
        assert trans.transform(once) == once

    def test_empty_prefix_and_suffix_add_no_dots(self):
        """Test that empty or blank prefix/suffix contribute nothing."""
        trans = PrefixStripSuffixTransform("", None, "   ")
        assert trans.transform("a.b") == "a_b"

    def test_prefix_and_suffix_are_trimmed(self):
        """Test that surrounding whitespace is removed from configuration."""
        trans = PrefixStripSuffixTransform("  prod ", [" com.example "], " web1 ")
        assert trans.transform("com.example.a.b") == "prod.a_b.web1"

    def test_only_first_matching_strip_prefix_removed(self):
        """Test that stripping stops after the first match in configured order."""
        trans = PrefixStripSuffixTransform(None, ["com", "com.example", "example"], None)
        # "com" matches first; "example" is not stripped afterwards
        assert trans.transform("com.example.a") == "example_a"

    def test_strip_prefix_must_be_literal_prefix(self):
        """Test that a strip prefix found elsewhere in the name is ignored."""
        trans = PrefixStripSuffixTransform(None, ["example"], None)
        assert trans.transform("com.example.a") == "com_example_a"

    def test_leading_dots_collapsed(self):
        """Test that all leading dots left after stripping are removed."""
        trans = PrefixStripSuffixTransform(None, ["com"], None)
        assert trans.transform("com...a.b") == "a_b"

    def test_all_dots_name(self):
        """Test that a name made only of dots collapses to an empty leaf."""
        trans = PrefixStripSuffixTransform("prod", None, None)
        assert trans.transform("...") == "prod."

    @pytest.mark.parametrize("strip", [["a."], ["a"]])
    def test_strip_with_or_without_trailing_dot(self, strip):
        """Test that the separator after a stripped prefix never leaks."""
        trans = OnlyFlattenLastTransform(None, strip, None)
        assert trans.transform("a.b.c.d") == "b.c_d"


class TestNoTransform:
    """Test the identity transform."""

    def test_identity(self):
        """Test that names are returned unchanged."""
        assert NO_TRANSFORM.transform(METRIC_NAME) == METRIC_NAME
        assert NO_TRANSFORM(METRIC_NAME) == METRIC_NAME
