"""
Session State Module
Holds the monitor state and the auto-watch flag behind a single lock.

Only atomic transitions are exposed; callers never set fields directly, so
combinations such as "awaiting accept button while stopped" cannot occur.
Each monitoring session is tagged with a generation number. Transitions that
carry a stale generation are refused, which keeps a loop belonging to an
already stopped session from acting on a newer one.
"""

import enum
import threading
from typing import Optional


class MonitorState(enum.Enum):
    IDLE = "idle"
    AWAITING_MATCH_SCREEN = "awaiting_match_screen"
    AWAITING_ACCEPT_BUTTON = "awaiting_accept_button"


class SessionState:
    """Thread-safe monitor state."""

    def __init__(self):
        self.lock = threading.Lock()
        self._state = MonitorState.IDLE
        self._generation = 0
        self._auto_watching = False

    @property
    def current(self) -> MonitorState:
        with self.lock:
            return self._state

    @property
    def generation(self) -> int:
        with self.lock:
            return self._generation

    def is_idle(self) -> bool:
        with self.lock:
            return self._state is MonitorState.IDLE

    def is_active(self, generation: int) -> bool:
        """True while the session identified by generation is still running."""
        with self.lock:
            return self._generation == generation and self._state is not MonitorState.IDLE

    def snapshot(self, generation: int) -> MonitorState:
        """State as seen by the given session; IDLE once it is superseded or stopped."""
        with self.lock:
            if self._generation != generation:
                return MonitorState.IDLE
            return self._state

    def begin_session(self) -> Optional[int]:
        """IDLE -> AWAITING_MATCH_SCREEN. Returns the new generation, or None if busy."""
        with self.lock:
            if self._state is not MonitorState.IDLE:
                return None
            self._generation += 1
            self._state = MonitorState.AWAITING_MATCH_SCREEN
            return self._generation

    def match_screen_found(self, generation: int) -> bool:
        """AWAITING_MATCH_SCREEN -> AWAITING_ACCEPT_BUTTON for the given session."""
        with self.lock:
            if self._generation != generation or self._state is not MonitorState.AWAITING_MATCH_SCREEN:
                return False
            self._state = MonitorState.AWAITING_ACCEPT_BUTTON
            return True

    def end_session(self, generation: Optional[int] = None) -> bool:
        """Any state -> IDLE. With a generation, only ends that session.

        Returns True when a running session was ended by this call.
        """
        with self.lock:
            if generation is not None and generation != self._generation:
                return False
            if self._state is MonitorState.IDLE:
                return False
            self._state = MonitorState.IDLE
            return True

    # ---- auto-watch flag ----
    @property
    def auto_watching(self) -> bool:
        with self.lock:
            return self._auto_watching

    def begin_auto_watch(self) -> bool:
        """Set the auto-watch flag. Returns False if it was already set."""
        with self.lock:
            if self._auto_watching:
                return False
            self._auto_watching = True
            return True

    def end_auto_watch(self) -> bool:
        with self.lock:
            was = self._auto_watching
            self._auto_watching = False
            return was
