import time

import numpy as np
import pytest

from autoaccept.config.vision import LOW_LATENCY
from autoaccept.core.state import MonitorState
from autoaccept.features.monitor import (
    STATUS_AWAITING_MATCH,
    STATUS_STOPPED,
    STATUS_WATCHING_BUTTON,
    AcceptMonitor,
)
from autoaccept.io.errors import CaptureFailure, TemplateLoadFailure
from autoaccept.vision.engine import TemplateSet
from autoaccept.vision.matcher import MatchCandidate


def frame(screen, button=None):
    return {"screen": screen, "button": button}


class DummySource:
    """Replays scripted frames; the last one repeats forever."""

    def __init__(self, frames):
        self.frames = list(frames)
        self.calls = 0

    def capture(self):
        self.calls += 1
        item = self.frames.pop(0) if len(self.frames) > 1 else self.frames[0]
        if isinstance(item, Exception):
            raise item
        return item


class DummyStore:
    def __init__(self, fail=False):
        self.fail = fail

    def load_all(self):
        if self.fail:
            raise TemplateLoadFailure("template 'accept' not found")
        tpl = np.zeros((4, 4, 3), dtype=np.uint8)
        return TemplateSet(tpl, tpl)


class DummyEngine:
    def __init__(self, on_find=None):
        self.on_find = on_find
        self.last_debug = {}

    def is_match_screen_present(self, frame):
        return frame["screen"]

    def find_accept_button(self, frame):
        if self.on_find is not None:
            self.on_find()
        return frame["button"]


class DummyClicker:
    def __init__(self, ok=True):
        self.ok = ok
        self.clicks = []

    def click(self, x, y):
        self.clicks.append((x, y))
        return self.ok


class DummySink:
    def __init__(self):
        self.logs = []
        self.statuses = []

    def log(self, message):
        self.logs.append(message)

    def set_status(self, status):
        self.statuses.append(status)


def make_monitor(frames, clicker=None, store=None, engine=None, profile=LOW_LATENCY):
    sleeps = []
    eng = engine or DummyEngine()
    monitor = AcceptMonitor(
        DummySource(frames),
        store or DummyStore(),
        clicker or DummyClicker(),
        sink=DummySink(),
        profile=profile,
        engine_factory=lambda templates, prof: eng,
        sleep=sleeps.append,
        # Never a multiple of 5 or 10: periodic status lines stay quiet
        clock=lambda: 1.0,
    )
    return monitor, sleeps


def test_end_to_end_trace_clicks_once_and_stops():
    button = MatchCandidate(500, 600, 0.9)
    frames = [frame(False), frame(True), frame(True), frame(True, button), frame(False)]
    monitor, sleeps = make_monitor(frames)

    assert monitor.start(run_loop=False) is True
    assert monitor.state is MonitorState.AWAITING_MATCH_SCREEN

    assert monitor.tick() is True
    assert monitor.state is MonitorState.AWAITING_MATCH_SCREEN
    assert monitor.tick() is True
    assert monitor.state is MonitorState.AWAITING_ACCEPT_BUTTON
    assert monitor.tick() is True
    assert monitor.state is MonitorState.AWAITING_ACCEPT_BUTTON
    # Click, settle, re-check finds the screen gone
    assert monitor.tick() is False
    assert monitor.state is MonitorState.IDLE

    assert monitor.clicker.clicks == [(500, 600)]
    assert sleeps == [LOW_LATENCY.settle_duration]
    assert monitor.sink.statuses == [STATUS_AWAITING_MATCH, STATUS_WATCHING_BUTTON, STATUS_STOPPED]
    assert any("Accept button found at (500, 600)" in line for line in monitor.sink.logs)


@pytest.mark.parametrize("score,clicked", [
    (0.2, False),
    (0.2000001, True),
])
def test_firing_threshold_is_strict(score, clicked):
    frames = [frame(True), frame(True, MatchCandidate(10, 20, score)), frame(True)]
    monitor, _ = make_monitor(frames)
    monitor.start(run_loop=False)
    monitor.tick()
    monitor.tick()
    assert (monitor.clicker.clicks == [(10, 20)]) is clicked
    if not clicked:
        assert any("click skipped" in line for line in monitor.sink.logs)


def test_screen_lost_while_waiting_for_button_stops():
    monitor, _ = make_monitor([frame(True), frame(False)])
    monitor.start(run_loop=False)
    monitor.tick()
    assert monitor.tick() is False
    assert monitor.state is MonitorState.IDLE
    assert monitor.clicker.clicks == []


def test_still_present_after_settle_keeps_watching():
    button = MatchCandidate(1, 2, 1.0)
    monitor, sleeps = make_monitor([frame(True), frame(True, button), frame(True)])
    monitor.start(run_loop=False)
    monitor.tick()
    assert monitor.tick() is True
    assert monitor.state is MonitorState.AWAITING_ACCEPT_BUTTON
    assert len(sleeps) == 1
    assert "Match screen still present - continuing" in monitor.sink.logs


def test_stop_before_tick_suppresses_click():
    button = MatchCandidate(5, 5, 1.0)
    monitor, _ = make_monitor([frame(True), frame(True, button)])
    monitor.start(run_loop=False)
    gen = monitor.session.generation
    monitor.tick(gen)
    assert monitor.stop() is True
    assert monitor.tick(gen) is False
    assert monitor.clicker.clicks == []
    assert monitor.sink.statuses[-1] == STATUS_STOPPED


def test_stop_during_detection_suppresses_click():
    holder = {}
    engine = DummyEngine(on_find=lambda: holder["monitor"].stop())
    monitor, sleeps = make_monitor([frame(True), frame(True, MatchCandidate(5, 5, 1.0))], engine=engine)
    holder["monitor"] = monitor
    monitor.start(run_loop=False)
    monitor.tick()
    assert monitor.tick() is False
    assert monitor.clicker.clicks == []
    assert sleeps == []


def test_stale_session_loop_cannot_touch_new_session():
    monitor, _ = make_monitor([frame(True)])
    monitor.start(run_loop=False)
    old = monitor.session.generation
    monitor.stop()
    monitor.start(run_loop=False)
    assert monitor.tick(old) is False
    assert monitor.state is MonitorState.AWAITING_MATCH_SCREEN


def test_start_is_refused_while_running():
    monitor, _ = make_monitor([frame(False)])
    assert monitor.start(run_loop=False) is True
    assert monitor.start(run_loop=False) is False
    assert monitor.stop() is True
    assert monitor.stop() is False


def test_template_load_failure_stays_idle():
    monitor, _ = make_monitor([frame(True)], store=DummyStore(fail=True))
    assert monitor.start(run_loop=False) is False
    assert monitor.state is MonitorState.IDLE
    assert any(line.startswith("Template load error") for line in monitor.sink.logs)


def test_capture_failure_skips_tick():
    monitor, _ = make_monitor([CaptureFailure("display gone"), frame(True)])
    monitor.start(run_loop=False)
    assert monitor.tick() is True
    assert monitor.state is MonitorState.AWAITING_MATCH_SCREEN
    monitor.tick()
    assert monitor.state is MonitorState.AWAITING_ACCEPT_BUTTON


def test_click_failure_keeps_watching():
    clicker = DummyClicker(ok=False)
    monitor, sleeps = make_monitor([frame(True), frame(True, MatchCandidate(7, 8, 1.0))], clicker=clicker)
    monitor.start(run_loop=False)
    monitor.tick()
    assert monitor.tick() is True
    assert monitor.state is MonitorState.AWAITING_ACCEPT_BUTTON
    assert clicker.clicks == [(7, 8)]
    assert sleeps == []
    assert "Clicking the accept button failed" in monitor.sink.logs


def test_detection_error_is_logged_and_loop_continues():
    class BrokenEngine(DummyEngine):
        def is_match_screen_present(self, frame):
            raise RuntimeError("boom")

    monitor, _ = make_monitor([frame(True)], engine=BrokenEngine())
    monitor.start(run_loop=False)
    assert monitor.tick() is True
    assert monitor.state is MonitorState.AWAITING_MATCH_SCREEN
    assert any("Detection error" in line for line in monitor.sink.logs)


def test_threaded_loop_stops_on_request():
    profile = LOW_LATENCY.with_overrides(poll_interval=0.01, settle_duration=0.0)
    monitor, _ = make_monitor([frame(True)], profile=profile)
    assert monitor.start() is True

    deadline = time.monotonic() + 2.0
    while monitor.state is not MonitorState.AWAITING_ACCEPT_BUTTON and time.monotonic() < deadline:
        time.sleep(0.01)
    assert monitor.state is MonitorState.AWAITING_ACCEPT_BUTTON

    monitor.stop(wait=True, timeout=2.0)
    assert not monitor._worker.is_alive()
    assert monitor.state is MonitorState.IDLE
    assert monitor.clicker.clicks == []
