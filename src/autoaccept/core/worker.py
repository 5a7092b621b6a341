"""
Worker Thread Module
Runs a callback on a fixed cadence on one background thread.

The loop lifecycle is explicit: start() spawns the thread, stop() signals it
and can optionally join, so callers (and tests) can wait for termination.
Stopping is cooperative and observed at the next tick boundary; a callback
that is already running is never interrupted.
"""

import logging
import threading
import time
from typing import Callable, Optional


class PeriodicWorker:
    """Timer-gated worker invoking ``callback`` every ``interval`` seconds."""

    def __init__(
        self,
        callback: Callable[[], Optional[bool]],
        interval: float,
        name: str = "autoaccept-worker",
        slow_threshold_ms: float = 1500.0,
    ):
        self.callback = callback
        self.interval = float(interval)
        self.name = name
        self.slow_threshold_ms = float(slow_threshold_ms)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._logger = logging.getLogger(__name__)
        self.ticks = 0

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name=self.name, daemon=True)
        self._thread.start()
        self._logger.debug("worker %s started (interval=%.2fs)", self.name, self.interval)

    def stop(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        """Signal the loop to exit; with wait=True also join the thread."""
        self._stop.set()
        if wait:
            self.join(timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout)

    def is_alive(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def run(self) -> None:
        """Main loop: wait one interval, then run one iteration, until stopped.

        A callback returning False ends the loop, the same as stop().
        """
        next_at = time.monotonic() + self.interval
        while not self._stop.wait(max(0.0, next_at - time.monotonic())):
            if not self._run_iteration():
                self._stop.set()
                break
            # Ticks that overrun the interval are dropped, not queued
            next_at += self.interval
            now = time.monotonic()
            if next_at < now:
                next_at = now + self.interval
        self._logger.debug("worker %s exiting", self.name)

    def _run_iteration(self) -> bool:
        """Run one tick. Return False to break the loop."""
        t0 = time.perf_counter()
        keep_going = True
        try:
            keep_going = self.callback() is not False
        except Exception:
            self._logger.exception("worker %s: tick failed", self.name)
        finally:
            self.ticks += 1
            dur_ms = (time.perf_counter() - t0) * 1000.0
            if dur_ms > self.slow_threshold_ms:
                self._logger.warning("worker %s: slow tick took %.1fms", self.name, dur_ms)
            else:
                self._logger.debug("worker %s: tick executed in %.1fms", self.name, dur_ms)
        return keep_going
