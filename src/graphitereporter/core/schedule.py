"""Schedules that drive report cycles at a fixed period."""

import logging
import threading
import time
from typing import Any, Callable, Optional

import simpy

logger = logging.getLogger(__name__)


class ThreadedSchedule:
    """Runs a task at a fixed rate on one dedicated daemon thread.

    Runs never overlap: if a run overruns one or more periods, the missed
    ticks are skipped and the next run is aligned to the original rate.
    Stopping prevents further runs but never interrupts the run in flight.
    """

    def __init__(
        self,
        task: Callable[[], Any],
        period_s: float,
        name: str = "graphite-reporter",
        initial_delay_s: Optional[float] = None,
    ) -> None:
        """Initialize the schedule.

        Args:
            task: Callable run once per tick
            period_s: Seconds between the starts of consecutive runs
            name: Thread name, also used in log messages
            initial_delay_s: Delay before the first run (defaults to one period)
        """
        if period_s <= 0:
            raise ValueError(f"Invalid period: {period_s}. Must be positive")
        self.task = task
        self.period_s = period_s
        self.name = name
        self.initial_delay_s = period_s if initial_delay_s is None else initial_delay_s
        self.runs = 0
        self.skipped_ticks = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError(f"Schedule {self.name} has already been started")
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"Started {self.name} with a period of {self.period_s}s")

    def _run(self) -> None:
        next_run = time.monotonic() + self.initial_delay_s

        while not self._stop_event.wait(max(0.0, next_run - time.monotonic())):
            try:
                self.task()
            except Exception:
                logger.exception(f"Unexpected error during a run of {self.name}")
            self.runs += 1

            next_run += self.period_s
            now = time.monotonic()
            if next_run < now:
                missed = int((now - next_run) // self.period_s) + 1
                self.skipped_ticks += missed
                next_run += missed * self.period_s
                logger.debug(f"{self.name} overran its period, skipped {missed} tick(s)")

        logger.info(f"Stopped {self.name} after {self.runs} run(s)")

    def stop(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        """Prevent further runs.

        Args:
            wait: Block until the run in flight (if any) has completed
            timeout: Maximum seconds to wait when ``wait`` is set
        """
        self._stop_event.set()
        thread = self._thread
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)


class SimulatedSchedule:
    """Runs report cycles in SimPy virtual time.

    The reporter's clock is bound to the simulation clock, so a preview of
    many periods completes instantly and timestamps are deterministic.
    """

    def __init__(self, reporter: Any, period_s: float, start_time: float = 0.0) -> None:
        """Initialize the simulated schedule.

        Args:
            reporter: Object with a ``report()`` method and a ``clock`` attribute
            period_s: Virtual seconds between cycles
            start_time: Initial simulation time (unix seconds for realistic stamps)
        """
        if period_s <= 0:
            raise ValueError(f"Invalid period: {period_s}. Must be positive")
        self.env: simpy.Environment = simpy.Environment(initial_time=start_time)
        self.reporter = reporter
        self.period_s = period_s
        self.runs = 0
        reporter.clock = self.now

    def now(self) -> float:
        return self.env.now

    def _cycle_process(self, cycles: int, done: simpy.Event):
        while self.runs < cycles:
            yield self.env.timeout(self.period_s)
            try:
                self.reporter.report()
            except Exception as e:
                logger.error(f"Error during simulated cycle at time {self.env.now}: {e}")
            self.runs += 1
        done.succeed(self.runs)

    def run(self, cycles: int) -> int:
        """Run ``cycles`` more cycles and return the total number of runs."""
        if cycles < 0:
            raise ValueError(f"Invalid number of cycles: {cycles}")
        done = self.env.event()
        self.env.process(self._cycle_process(self.runs + cycles, done))
        self.env.run(until=done)
        logger.debug(f"Simulated {cycles} cycle(s), now at time {self.env.now}")
        return self.runs
