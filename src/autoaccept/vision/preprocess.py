"""
Pure frame helpers and search-region geometry.

This module contains only stateless, side-effect-free functions used by the
matcher and detectors. Frames are numpy arrays of shape (H, W, 3|4) with
channels in R, G, B(, A) order; alpha is always ignored.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np


def as_rgb16(frame: np.ndarray) -> np.ndarray:
    """Return the R, G, B planes as int16 so channel differences cannot wrap."""
    if frame is None or frame.ndim != 3 or frame.shape[2] < 3:
        raise ValueError("expected an (H, W, 3|4) frame")
    if frame.dtype == np.int16 and frame.shape[2] == 3:
        return frame
    return frame[:, :, :3].astype(np.int16)


def frame_size(frame: np.ndarray) -> Tuple[int, int]:
    """Return (width, height)."""
    return int(frame.shape[1]), int(frame.shape[0])


@dataclass(frozen=True)
class Region:
    """Axis-aligned half-open rectangle [x0, x1) x [y0, y1)."""

    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return max(0, self.x1 - self.x0)

    @property
    def height(self) -> int:
        return max(0, self.y1 - self.y0)

    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def clip(self, width: int, height: int) -> "Region":
        x0 = min(max(0, self.x0), width)
        y0 = min(max(0, self.y0), height)
        x1 = min(max(x0, self.x1), width)
        y1 = min(max(y0, self.y1), height)
        return Region(x0, y0, x1, y1)

    @classmethod
    def full(cls, width: int, height: int) -> "Region":
        return cls(0, 0, width, height)

    @classmethod
    def around_center(cls, width: int, height: int, left: int, up: int, right: int, down: int) -> "Region":
        """Rectangle spanning center-left..center+right, center-up..center+down, clipped."""
        cx, cy = width // 2, height // 2
        return cls(cx - left, cy - up, cx + right, cy + down).clip(width, height)

    def crop(self, frame: np.ndarray) -> np.ndarray:
        return frame[self.y0:self.y1, self.x0:self.x1]
