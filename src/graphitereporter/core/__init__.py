"""Scheduling of report cycles."""

from .schedule import SimulatedSchedule, ThreadedSchedule

__all__ = ["SimulatedSchedule", "ThreadedSchedule"]
