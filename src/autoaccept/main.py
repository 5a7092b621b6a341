"""Main Application entry point.

Initializes config and logging, wires the frame source, reference store,
click controller and sinks into the monitor and auto-watcher, then either
runs the PyQt6 status window, a headless loop, or a one-shot diagnostics
report.
"""

import argparse
import logging
import sys
import threading
from typing import List, Optional

from autoaccept.config.vision import get_profile
from autoaccept.core.config import ConfigManager
from autoaccept.core.logging_setup import get_artifacts_dir, setup_logging
from autoaccept.core.status import FanoutSink, LogSink
from autoaccept.features.monitor import AcceptMonitor, AutoWatcher
from autoaccept.io import ClickController, ReferenceStore, ScreenCapture


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="autoaccept", description="Click the match accept button automatically.")
    parser.add_argument("--config", help="path to config.ini (default: per-user config dir)")
    parser.add_argument("--profile", choices=["high_recall", "low_latency"], help="detection profile")
    parser.add_argument("--log-level", help="override log level")
    parser.add_argument("--headless", action="store_true", help="run without the status window")
    parser.add_argument("--diagnose", action="store_true", help="print a one-shot diagnostics report and exit")
    parser.add_argument("--no-auto-watch", action="store_true", help="do not start monitoring automatically")
    return parser.parse_args(argv)


def _install_excepthook() -> None:
    def _excepthook(exc_type, exc, tb):
        logging.getLogger(__name__).exception("Unhandled exception:", exc_info=(exc_type, exc, tb))
        sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = _excepthook


def _run_headless(monitor: AcceptMonitor, watcher: AutoWatcher, auto_watch: bool) -> int:
    logger = logging.getLogger(__name__)
    if auto_watch:
        watcher.start()
    else:
        monitor.start()
    logger.info("Running headless; press Ctrl+C to exit")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop(wait=True, timeout=2.0)
        monitor.stop(wait=True, timeout=6.0)
    return 0


def _run_window(monitor: AcceptMonitor, watcher: AutoWatcher, sink: FanoutSink, auto_watch: bool, artifacts_dir) -> int:
    from PyQt6.QtWidgets import QApplication
    from autoaccept.gui.window import MonitorWindow

    app = QApplication.instance() or QApplication(sys.argv)
    window = MonitorWindow(auto_watch=auto_watch)
    sink.add(window)

    def _diagnostics():
        threading.Thread(
            target=lambda: monitor.run_diagnostics(artifacts_dir=artifacts_dir),
            name="autoaccept-diagnostics",
            daemon=True,
        ).start()

    def _auto_watch(enabled: bool):
        if enabled:
            watcher.start()
        else:
            watcher.stop()

    window.on_start(lambda: monitor.start())
    window.on_stop(lambda: monitor.stop())
    window.on_diagnostics(_diagnostics)
    window.on_auto_watch(_auto_watch)

    def cleanup():
        watcher.stop()
        monitor.stop()

    app.aboutToQuit.connect(cleanup)

    if auto_watch:
        watcher.start()
    window.show()
    return app.exec()


def main(argv: Optional[List[str]] = None) -> int:
    """Start the control surface selected on the command line."""
    args = _parse_args(argv)

    config_manager = ConfigManager(args.config)
    setup_logging(config_manager, args.log_level)
    _install_excepthook()

    profile = get_profile(args.profile or config_manager.get("profile"))
    capture = ScreenCapture()
    store = ReferenceStore.from_config(config_manager)
    clicker = ClickController(
        origin=lambda: capture.origin,
        move_duration=config_manager.get_float("click_move_duration", 0.05),
    )
    sink = FanoutSink([LogSink()])
    monitor = AcceptMonitor(
        capture,
        store,
        clicker,
        sink=sink,
        profile=profile,
        slow_tick_threshold_ms=config_manager.get_float("slow_tick_threshold_ms", 1500.0),
    )
    watcher = AutoWatcher(monitor)
    artifacts_dir = get_artifacts_dir(config_manager) if config_manager.get_bool("save_artifacts") else None
    auto_watch = config_manager.get_bool("auto_watch", True) and not args.no_auto_watch

    logging.getLogger(__name__).info("AutoAccept starting (profile=%s, templates=%s)", profile.name, store.base_dir)

    if args.diagnose:
        report = monitor.run_diagnostics(artifacts_dir=artifacts_dir)
        return 0 if report.templates_ok and report.capture_error is None else 1
    if args.headless:
        return _run_headless(monitor, watcher, auto_watch)
    return _run_window(monitor, watcher, sink, auto_watch, artifacts_dir)


if __name__ == "__main__":
    sys.exit(main())
