"""
Pixel similarity predicates.

Every matcher and detector builds on these. Distances are Manhattan
(|dR| + |dG| + |dB|) which avoids a square root in the hot loops. All
functions are vectorised: they accept single pixels or whole arrays whose
last axis holds at least R, G, B, and return numpy booleans/ints.
"""
from __future__ import annotations

import numpy as np

from ..config.vision import LOOSE_BUTTON, LOOSE_SCAN, NEAR_WHITE_LEVEL, STRICT_COLOR_DISTANCE


def _rgb(a) -> np.ndarray:
    arr = np.asarray(a)
    return arr[..., :3].astype(np.int16, copy=False)


def manhattan(a, b) -> np.ndarray:
    """Sum of absolute channel differences, alpha ignored."""
    d = np.abs(_rgb(a) - _rgb(b))
    return d[..., 0] + d[..., 1] + d[..., 2]


def loose_match(a, b, threshold: int = LOOSE_BUTTON) -> np.ndarray:
    """Search-grade comparison; threshold is tuned per call site (120..150)."""
    return manhattan(a, b) < threshold


def strict_match(a, b) -> np.ndarray:
    """Verification-grade comparison."""
    return manhattan(a, b) < STRICT_COLOR_DISTANCE


def color_difference(a, b) -> np.ndarray:
    return manhattan(a, b)


def button_color_mask(pixels) -> np.ndarray:
    """Teal/green/blue fills used by the accept button."""
    px = _rgb(pixels)
    r, g, b = px[..., 0], px[..., 1], px[..., 2]
    green = (g > r + 20) & (g > b + 10) & (g > 100)
    blue = (b > r + 20) & (g > r + 10) & (b > 80)
    teal = (g > 120) & (b > 80) & (r < 100)
    return green | blue | teal


def near_white_mask(pixels) -> np.ndarray:
    px = _rgb(pixels)
    return (px[..., 0] > NEAR_WHITE_LEVEL) & (px[..., 1] > NEAR_WHITE_LEVEL) & (px[..., 2] > NEAR_WHITE_LEVEL)
