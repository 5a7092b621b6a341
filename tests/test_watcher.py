from autoaccept.config.vision import LOW_LATENCY
from autoaccept.core.state import MonitorState
from autoaccept.features.monitor import AcceptMonitor, AutoWatcher

from test_monitor import DummyClicker, DummyEngine, DummySink, DummySource, DummyStore, frame

# Long poll interval: the monitor thread started by the watcher never ticks
SLOW = LOW_LATENCY.with_overrides(poll_interval=60.0)


def make_watcher(frames, store=None):
    monitor = AcceptMonitor(
        DummySource(frames),
        store or DummyStore(),
        DummyClicker(),
        sink=DummySink(),
        profile=SLOW,
        engine_factory=lambda templates, prof: DummyEngine(),
    )
    return AutoWatcher(monitor), monitor


def test_watcher_starts_monitor_when_screen_appears():
    watcher, monitor = make_watcher([frame(False), frame(True)])
    assert watcher.start(run_loop=False) is True
    assert watcher.running

    assert watcher.tick() is True
    assert monitor.state is MonitorState.IDLE
    try:
        assert watcher.tick() is True
        assert monitor.state is MonitorState.AWAITING_MATCH_SCREEN
        assert "Match screen detected - starting monitoring automatically" in monitor.sink.logs
    finally:
        monitor.stop(wait=True, timeout=2.0)


def test_watcher_skips_while_monitor_is_busy():
    watcher, monitor = make_watcher([frame(True)])
    watcher.start(run_loop=False)
    monitor.start(run_loop=False)
    calls = monitor.frame_source.calls
    assert watcher.tick() is True
    assert monitor.frame_source.calls == calls


def test_watcher_stop_ends_loop():
    watcher, _ = make_watcher([frame(False)])
    watcher.start(run_loop=False)
    assert watcher.start(run_loop=False) is False
    watcher.stop()
    assert not watcher.running
    assert watcher.tick() is False


def test_watcher_does_not_start_without_templates():
    watcher, monitor = make_watcher([frame(True)], store=DummyStore(fail=True))
    assert watcher.start(run_loop=False) is False
    assert not watcher.running
    assert any(line.startswith("Auto-watch unavailable") for line in monitor.sink.logs)


def test_watcher_threaded_start_stop():
    watcher, monitor = make_watcher([frame(False)])
    watcher.interval = 0.01
    assert watcher.start() is True
    watcher.stop(wait=True, timeout=2.0)
    assert not watcher._worker.is_alive()
    assert monitor.state is MonitorState.IDLE
