"""Control System Module
Moves the pointer and performs a left click at a frame-relative position.

Windows uses pydirectinput (DirectInput scan codes, works in games that
ignore synthetic Win32 cursor events); other platforms use pyautogui. The
backend is imported on first use so importing this module never touches
the display.
"""

import logging
import os
import sys
import time
from typing import Callable, Optional, Tuple


def _backend():
    if sys.platform == "win32":
        import pydirectinput as pdi  # type: ignore
        return pdi
    import pyautogui  # type: ignore
    return pyautogui


class ClickController:
    """Pointer move + press + release."""

    def __init__(
        self,
        origin: Optional[Callable[[], Tuple[int, int]]] = None,
        move_duration: Optional[float] = None,
        press_hold: float = 0.05,
    ):
        # Frame coordinates are relative to the captured monitor
        self._origin = origin or (lambda: (0, 0))
        if move_duration is None:
            try:
                move_duration = float(os.getenv("AA_MOUSE_MOVE_DURATION", "0.05") or 0.05)
            except ValueError:
                move_duration = 0.05
        self._move_duration = max(0.0, float(move_duration))
        self._press_hold = max(0.0, float(press_hold))
        self._configured = False
        self._logger = logging.getLogger(__name__)

    def _input(self):
        pdi = _backend()
        if not self._configured:
            # Immediate actions and no corner failsafe
            pdi.FAILSAFE = False
            pdi.PAUSE = 0.0
            self._configured = True
        return pdi

    def is_supported(self) -> bool:
        """True when a pointer backend can be loaded on this system."""
        if sys.platform not in ("win32", "darwin") and not os.environ.get("DISPLAY"):
            return False
        try:
            self._input()
            return True
        except Exception as e:
            self._logger.debug("mouse: backend unavailable: %s", e)
            return False

    def click(self, x: int, y: int) -> bool:
        """Click at frame coordinate (x, y). Returns False on any failure."""
        ox, oy = self._origin()
        ax, ay = int(x) + int(ox), int(y) + int(oy)
        try:
            pdi = self._input()
            if self._move_duration > 0.0:
                pdi.moveTo(ax, ay, duration=self._move_duration)
            else:
                pdi.moveTo(ax, ay)
            time.sleep(0.05)
            pdi.mouseDown(button="left")
            time.sleep(self._press_hold)
            pdi.mouseUp(button="left")
        except Exception as e:
            self._logger.warning("mouse: click at (%d,%d) failed: %s", ax, ay, e)
            return False
        self._logger.info("mouse: clicked at (%d,%d)", ax, ay)
        return True
