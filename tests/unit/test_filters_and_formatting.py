"""
Unit tests for entry filters and wire value formatting.
"""

import locale

import numpy as np
import pytest

from graphitereporter.export.filters import ALL, DEFAULT, DEFAULT_EXCLUDES, ExcludeSetFilter
from graphitereporter.export.formatting import format_value


class TestEntryFilters:
    """Test the standing and custom entry filters."""

    def test_default_filter(self):
        """Test the default exclude set."""
        assert DEFAULT.should_send("p99")
        assert DEFAULT.should_send("count")
        assert DEFAULT.should_send("m1_rate")
        assert not DEFAULT.should_send("mean")
        assert not DEFAULT.should_send("max")
        assert not DEFAULT.should_send("p98")

    def test_default_excludes(self):
        """Test that the default exclude set is exactly the low-signal statistics."""
        assert DEFAULT_EXCLUDES == {
            "max", "min", "m15_rate", "mean_rate", "mean", "stddev", "p75", "p98",
        }

    @pytest.mark.parametrize("label", ["max", "p98", "count", "anything", ""])
    def test_all_filter_accepts_everything(self, label):
        """Test that the accept-all filter accepts known and unknown labels."""
        assert ALL.should_send(label)
        assert ALL(label)

    def test_custom_exclude_set(self):
        """Test a user supplied exclude set."""
        send_filter = ExcludeSetFilter(["p999", "count"])
        assert not send_filter.should_send("p999")
        assert not send_filter.should_send("count")
        assert send_filter.should_send("max")


class TestFormatValue:
    """Test formatting of values for the plaintext protocol."""

    def test_float_two_decimals(self):
        """Test that floats always have exactly two decimals."""
        assert format_value(1.0 / 3.0) == "0.33"
        assert format_value(2.0) == "2.00"
        assert format_value(1234567.891) == "1234567.89"

    def test_integer_no_decimal_point(self):
        """Test that integral counts are rendered without decimals or separators."""
        assert format_value(12) == "12"
        assert format_value(1234567) == "1234567"
        assert format_value(-3) == "-3"

    def test_numpy_scalars(self):
        """Test that numpy scalars format like their Python counterparts."""
        assert format_value(np.int64(12)) == "12"
        assert format_value(np.float64(0.125)) == "0.12"
        assert format_value(np.float32(1.5)) == "1.50"

    @pytest.mark.parametrize("value", [None, True, False, "12", object(), [1], float("nan"), float("inf")])
    def test_unrepresentable_values(self, value):
        """Test that non-numeric values have no representation."""
        assert format_value(value) is None

    def test_locale_invariant(self):
        """Test that a comma decimal locale does not change the output."""
        previous = locale.setlocale(locale.LC_NUMERIC)
        try:
            try:
                locale.setlocale(locale.LC_NUMERIC, "de_DE.UTF-8")
            except locale.Error:
                pytest.skip("de_DE locale not available")
            assert format_value(1.5) == "1.50"
            assert format_value(1234567) == "1234567"
        finally:
            locale.setlocale(locale.LC_NUMERIC, previous)
