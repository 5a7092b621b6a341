from __future__ import annotations

import logging
from typing import Optional

from ...core.status import send_log
from ...core.worker import PeriodicWorker
from ...io.errors import CaptureFailure, TemplateLoadFailure
from ...vision.engine import DetectionEngine
from .monitor import AcceptMonitor


class AutoWatcher:
    """Background watcher that starts the monitor when the match screen appears.

    Polls once per ``profile.watch_interval`` while the monitor is idle and
    skips its body entirely while a monitoring session is running. Started
    and stopped independently of the monitor.
    """

    def __init__(self, monitor: AcceptMonitor, interval: Optional[float] = None) -> None:
        self.monitor = monitor
        self.interval = float(interval if interval is not None else monitor.profile.watch_interval)
        self._engine: Optional[DetectionEngine] = None
        self._worker: Optional[PeriodicWorker] = None
        self._logger = logging.getLogger(__name__)

    @property
    def running(self) -> bool:
        return self.monitor.session.auto_watching

    def start(self, run_loop: bool = True) -> bool:
        if not self.monitor.session.begin_auto_watch():
            return False
        try:
            self._engine = self.monitor.build_engine()
        except TemplateLoadFailure as e:
            self.monitor.session.end_auto_watch()
            self._logger.error("watcher: template load failed: %s", e)
            send_log(self.monitor.sink, f"Auto-watch unavailable: {e}")
            return False
        if run_loop:
            self._worker = PeriodicWorker(self.tick, self.interval, name="autoaccept-watcher")
            self._worker.start()
        self._logger.info("watcher: started (interval=%.2fs)", self.interval)
        return True

    def stop(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        was_running = self.monitor.session.end_auto_watch()
        if self._worker is not None:
            self._worker.stop(wait=wait, timeout=timeout)
        if was_running:
            self._logger.info("watcher: stopped")

    def tick(self) -> bool:
        """One watch iteration. Returns False once auto-watching was turned off."""
        if not self.monitor.session.auto_watching:
            return False
        if not self.monitor.session.is_idle() or self._engine is None:
            return True
        try:
            frame = self.monitor.frame_source.capture()
        except CaptureFailure as e:
            self._logger.debug("watcher: capture failed: %s", e)
            return True
        if self._engine.is_match_screen_present(frame):
            send_log(self.monitor.sink, "Match screen detected - starting monitoring automatically")
            self.monitor.start()
        return True
