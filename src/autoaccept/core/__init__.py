"""Core subpackage.

- config: INI-backed ConfigManager
- logging_setup: session-based logging
- state: SessionState and MonitorState
- worker: PeriodicWorker scheduled-task loop
- status: observability sinks
"""
from .config import ConfigManager
from .state import MonitorState, SessionState
from .status import FanoutSink, LogSink, StatusSink, send_log, send_status
from .worker import PeriodicWorker

__all__ = [
    "ConfigManager",
    "MonitorState",
    "SessionState",
    "FanoutSink",
    "LogSink",
    "StatusSink",
    "send_log",
    "send_status",
    "PeriodicWorker",
]
