"""Reporter presets assembled from configuration."""

from .reporter_presets import CommonGraphiteReporter, SimpleGraphiteReporter, create_reporter

__all__ = ["CommonGraphiteReporter", "SimpleGraphiteReporter", "create_reporter"]
