from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Protocol

import numpy as np  # type: ignore

from ...config.vision import LOW_LATENCY, DetectionProfile
from ...core.state import MonitorState, SessionState
from ...core.status import StatusSink, send_log, send_status
from ...core.worker import PeriodicWorker
from ...io.errors import CaptureFailure, ClickFailure, TemplateLoadFailure
from ...vision.engine import DetectionEngine, TemplateSet
from ...vision.matcher import MatchCandidate

STATUS_STOPPED = "stopped"
STATUS_AWAITING_MATCH = "awaiting match screen"
STATUS_WATCHING_BUTTON = "watching for accept button"


class FrameSource(Protocol):
    def capture(self) -> np.ndarray: ...


class TemplateStore(Protocol):
    def load_all(self) -> TemplateSet: ...


class Clicker(Protocol):
    def click(self, x: int, y: int) -> bool: ...


class AcceptMonitor:
    """Polling state machine that clicks the accept button once the match is found.

    IDLE -> AWAITING_MATCH_SCREEN -> AWAITING_ACCEPT_BUTTON -> IDLE

    Each session runs on its own PeriodicWorker ticking every
    ``profile.poll_interval`` seconds. A tick captures one frame and asks the
    detection engine about it; detection, click and re-verification happen
    strictly in sequence on that one thread, so two clicks can never be in
    flight. Every per-tick failure is logged and the loop keeps going.
    """

    def __init__(
        self,
        frame_source: FrameSource,
        store: TemplateStore,
        clicker: Clicker,
        sink: Optional[StatusSink] = None,
        profile: DetectionProfile = LOW_LATENCY,
        session: Optional[SessionState] = None,
        engine_factory: Callable[[TemplateSet, DetectionProfile], DetectionEngine] = DetectionEngine,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
        slow_tick_threshold_ms: float = 1500.0,
    ) -> None:
        self.frame_source = frame_source
        self.store = store
        self.clicker = clicker
        self.sink = sink
        self.profile = profile
        self.session = session or SessionState()
        self.engine_factory = engine_factory
        self._sleep = sleep
        self._clock = clock
        self._slow_tick_threshold_ms = slow_tick_threshold_ms
        self._engine: Optional[DetectionEngine] = None
        self._worker: Optional[PeriodicWorker] = None
        self._logger = logging.getLogger(__name__)

    # --------------------------- control surface ---------------------------
    @property
    def state(self) -> MonitorState:
        return self.session.current

    @property
    def engine(self) -> Optional[DetectionEngine]:
        return self._engine

    def build_engine(self) -> DetectionEngine:
        """Load both templates and return a fresh engine. Raises TemplateLoadFailure."""
        templates = self.store.load_all()
        return self.engine_factory(templates, self.profile)

    def start(self, run_loop: bool = True) -> bool:
        """IDLE -> AWAITING_MATCH_SCREEN. Returns False if busy or templates fail to load.

        With run_loop=False no worker thread is spawned; the caller drives
        tick() itself.
        """
        if not self.session.is_idle():
            return False
        try:
            engine = self.build_engine()
        except TemplateLoadFailure as e:
            self._logger.error("monitor: template load failed: %s", e)
            send_log(self.sink, f"Template load error: {e}")
            return False

        generation = self.session.begin_session()
        if generation is None:
            return False
        self._engine = engine
        send_status(self.sink, STATUS_AWAITING_MATCH)
        send_log(self.sink, "Monitoring started - looking for the match screen")
        self._logger.info("monitor: session %d started (profile=%s)", generation, self.profile.name)

        if run_loop:
            worker = PeriodicWorker(
                lambda: self.tick(generation),
                self.profile.poll_interval,
                name=f"autoaccept-monitor-{generation}",
                slow_threshold_ms=self._slow_tick_threshold_ms,
            )
            self._worker = worker
            worker.start()
        return True

    def stop(self, wait: bool = False, timeout: Optional[float] = None) -> bool:
        """Any state -> IDLE. Observed by the loop at its next tick boundary."""
        ended = self.session.end_session()
        worker = self._worker
        if worker is not None:
            worker.stop(wait=wait, timeout=timeout)
        if ended:
            self._logger.info("monitor: stopped")
            send_status(self.sink, STATUS_STOPPED)
            send_log(self.sink, "Monitoring stopped")
        return ended

    def join(self, timeout: Optional[float] = None) -> None:
        if self._worker is not None:
            self._worker.join(timeout)

    def run_diagnostics(self, clicker_probe: Optional[Callable[[], bool]] = None, artifacts_dir=None):
        from .diagnostics import run_diagnostics

        probe = clicker_probe or getattr(self.clicker, "is_supported", None)
        return run_diagnostics(
            self.frame_source, self.store, self.sink, self.profile,
            click_probe=probe, engine_factory=self.engine_factory, artifacts_dir=artifacts_dir,
        )

    # --------------------------- loop body ---------------------------
    def tick(self, generation: Optional[int] = None) -> bool:
        """Run one poll iteration. Returns False once the session is over."""
        gen = self.session.generation if generation is None else generation
        state = self.session.snapshot(gen)
        engine = self._engine
        if state is MonitorState.IDLE or engine is None:
            return False
        try:
            try:
                frame = self.frame_source.capture()
            except CaptureFailure as e:
                self._logger.warning("monitor: capture failed, skipping tick: %s", e)
                return True
            if state is MonitorState.AWAITING_MATCH_SCREEN:
                self._await_match_screen(gen, engine, frame)
            else:
                self._await_accept_button(gen, engine, frame)
        except Exception as e:
            self._logger.exception("monitor: tick failed")
            send_log(self.sink, f"Detection error, retrying: {e}")
        return self.session.is_active(gen)

    def _await_match_screen(self, gen: int, engine: DetectionEngine, frame: np.ndarray) -> None:
        if engine.is_match_screen_present(frame):
            if self.session.match_screen_found(gen):
                self._logger.info("monitor: match screen detected")
                send_log(self.sink, "Match screen detected - watching for the accept button")
                send_status(self.sink, STATUS_WATCHING_BUTTON)
            return
        if int(self._clock()) % 5 == 0:
            h, w = frame.shape[:2]
            send_log(self.sink, f"Waiting for the match screen... (screen {w}x{h})")

    def _await_accept_button(self, gen: int, engine: DetectionEngine, frame: np.ndarray) -> None:
        if not engine.is_match_screen_present(frame):
            self._finish(gen, "Match screen no longer detected - stopping")
            return

        t0 = time.perf_counter()
        cand = engine.find_accept_button(frame)
        elapsed_ms = (time.perf_counter() - t0) * 1000.0
        if cand is None:
            if int(self._clock()) % 10 == 0:
                h, w = frame.shape[:2]
                send_log(self.sink, f"Searching for the accept button... ({elapsed_ms:.0f}ms, screen {w}x{h})")
            return

        send_log(
            self.sink,
            f"Accept button found at ({cand.x}, {cand.y}) via {cand.method}, "
            f"score {cand.score:.3f}, {elapsed_ms:.0f}ms",
        )
        if not cand.score > self.profile.firing_threshold:
            send_log(self.sink, f"Score too low, click skipped (score {cand.score:.3f})")
            return
        # A stop() issued during detection suppresses the click
        if not self.session.is_active(gen):
            return

        try:
            self._click(cand)
        except ClickFailure as e:
            self._logger.warning("monitor: %s", e)
            send_log(self.sink, "Clicking the accept button failed")
            return

        send_log(self.sink, f"Accept button clicked; re-checking in {self.profile.settle_duration:.0f}s")
        self._sleep(self.profile.settle_duration)
        try:
            after = self.frame_source.capture()
        except CaptureFailure as e:
            self._logger.warning("monitor: re-check capture failed: %s", e)
            send_log(self.sink, "Match screen still present - continuing")
            return
        if not engine.is_match_screen_present(after):
            self._finish(gen, "Match screen no longer detected - stopping")
        else:
            send_log(self.sink, "Match screen still present - continuing")

    def _click(self, cand: MatchCandidate) -> None:
        try:
            ok = self.clicker.click(cand.x, cand.y)
        except Exception as e:
            raise ClickFailure(f"click at ({cand.x},{cand.y}) raised: {e}") from e
        if not ok:
            raise ClickFailure(f"click at ({cand.x},{cand.y}) was not delivered")
        self._logger.info("monitor: clicked accept button at (%d,%d) score=%.3f", cand.x, cand.y, cand.score)

    def _finish(self, gen: int, message: str) -> None:
        if self.session.end_session(gen):
            self._logger.info("monitor: session %d finished", gen)
            send_log(self.sink, message)
            send_status(self.sink, STATUS_STOPPED)
