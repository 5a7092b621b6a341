from .monitor import (
    AcceptMonitor,
    STATUS_AWAITING_MATCH,
    STATUS_STOPPED,
    STATUS_WATCHING_BUTTON,
)
from .watcher import AutoWatcher
from .diagnostics import DiagnosticsReport, run_diagnostics

__all__ = [
    "AcceptMonitor",
    "AutoWatcher",
    "DiagnosticsReport",
    "run_diagnostics",
    "STATUS_AWAITING_MATCH",
    "STATUS_STOPPED",
    "STATUS_WATCHING_BUTTON",
]
