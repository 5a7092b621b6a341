"""Frame source: full-display capture through mss.

Frames are returned as RGB uint8 arrays. The mss handle is kept per thread
because the monitor loop, the auto-watcher and diagnostics may each capture
from their own thread.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Tuple

import mss  # type: ignore
import numpy as np  # type: ignore

from ..config.vision import PERF_ENABLED
from .errors import CaptureFailure


class ScreenCapture:
    """Capture one monitor (1 = primary) as an RGB frame."""

    def __init__(self, monitor_index: int = 1) -> None:
        self.monitor_index = int(monitor_index)
        self._tls = threading.local()
        self._origin: Tuple[int, int] = (0, 0)
        self._logger = logging.getLogger(__name__)

    @property
    def origin(self) -> Tuple[int, int]:
        """Absolute (left, top) of the most recently captured monitor."""
        return self._origin

    def _get_sct(self, force_new: bool = False):
        sct = getattr(self._tls, "sct", None)
        if force_new or sct is None:
            if sct is not None:
                try:
                    sct.close()
                except Exception:
                    pass
            sct = mss.mss()
            self._tls.sct = sct
        return sct

    def _monitor(self, sct) -> dict:
        monitors = sct.monitors
        if not monitors:
            raise CaptureFailure("no displays reported")
        idx = self.monitor_index if self.monitor_index < len(monitors) else 0
        return monitors[idx]

    def capture(self) -> np.ndarray:
        """Grab the display. Raises CaptureFailure when it is unavailable."""
        t0 = time.perf_counter()
        try:
            sct = self._get_sct()
            try:
                monitor = self._monitor(sct)
                shot = sct.grab(monitor)
            except AttributeError:
                # Stale handle (e.g. after a display change); rebuild once
                sct = self._get_sct(force_new=True)
                monitor = self._monitor(sct)
                shot = sct.grab(monitor)
        except CaptureFailure:
            raise
        except Exception as e:
            raise CaptureFailure(f"screen capture failed: {e}") from e

        self._origin = (int(monitor.get("left", 0)), int(monitor.get("top", 0)))
        frame = np.array(shot)  # BGRA
        rgb = np.ascontiguousarray(frame[:, :, 2::-1])
        if PERF_ENABLED or self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(
                "capture: grab %.1fms size=%dx%d", (time.perf_counter() - t0) * 1000.0, rgb.shape[1], rgb.shape[0]
            )
        return rgb

    def close(self) -> None:
        sct = getattr(self._tls, "sct", None)
        if sct is not None:
            sct.close()
            self._tls.sct = None
