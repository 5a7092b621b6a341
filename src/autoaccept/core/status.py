"""Observability sink plumbing.

A sink receives human-readable log lines and short status strings. Delivery
is fire-and-forget: failures inside a sink are swallowed so they can never
break a detection loop, and a notification with no sink attached is dropped.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol


class StatusSink(Protocol):
    def log(self, message: str) -> None: ...

    def set_status(self, status: str) -> None: ...


class LogSink:
    """Sink that forwards everything to the logging module."""

    def __init__(self, name: str = "autoaccept.status") -> None:
        self._logger = logging.getLogger(name)
        self.status: str = ""

    def log(self, message: str) -> None:
        self._logger.info("%s", message)

    def set_status(self, status: str) -> None:
        self.status = status
        self._logger.info("status: %s", status)


class FanoutSink:
    """Broadcast to several sinks; a failing sink does not affect the others."""

    def __init__(self, sinks: Iterable[StatusSink] = ()) -> None:
        self.sinks = list(sinks)

    def add(self, sink: StatusSink) -> None:
        self.sinks.append(sink)

    def log(self, message: str) -> None:
        for sink in self.sinks:
            send_log(sink, message)

    def set_status(self, status: str) -> None:
        for sink in self.sinks:
            send_status(sink, status)


def send_log(sink: Optional[StatusSink], message: str) -> None:
    if sink is None:
        return
    try:
        sink.log(message)
    except Exception:
        # Swallow errors from sinks to avoid crashing the caller
        pass


def send_status(sink: Optional[StatusSink], status: str) -> None:
    if sink is None:
        return
    try:
        sink.set_status(status)
    except Exception:
        pass
