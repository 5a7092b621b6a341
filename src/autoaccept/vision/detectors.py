"""
Pure vision detectors (no IO):

- Near-white text ratio: share of bright pixels in a region, a cheap
  scale-independent signal for the localized status text on the matching
  screen.
- Colour cluster: the densest patch of accept-button colours.
- Edge density: the first window with a button-like density of colour edges.

The cluster and edge detectors are fallbacks used when template matching
finds nothing; they trade precision for recall. All functions here are side
effect free and suitable for unit tests on synthetic frames.
"""
from __future__ import annotations

from typing import Optional, Tuple
import logging

import cv2
import numpy as np

from ..config.vision import (
    CLUSTER_MIN_SIZE,
    EDGE_COLOR_DISTANCE,
    EDGE_RATIO_THRESHOLD,
)
from .preprocess import Region, as_rgb16, frame_size
from .similarity import button_color_mask, color_difference, near_white_mask

logger = logging.getLogger(__name__)


def near_white_ratio(frame: np.ndarray, region: Region, stride: int = 3) -> float:
    """Fraction of sampled pixels in ``region`` that are near white."""
    img = as_rgb16(frame)
    w, h = frame_size(img)
    r = region.clip(w, h)
    if r.is_empty():
        return 0.0
    samples = img[r.y0:r.y1:stride, r.x0:r.x1:stride]
    if samples.size == 0:
        return 0.0
    return float(near_white_mask(samples).mean())


def detect_button_by_color(
    frame: np.ndarray,
    region: Region,
    stride: int = 2,
    radius: int = 20,
    min_cluster: int = CLUSTER_MIN_SIZE,
) -> Optional[Tuple[int, int, int]]:
    """Return (x, y, cluster_size) of the densest button-coloured pixel, or None.

    Every ``stride``-th pixel that is button coloured is scored by the number
    of button-coloured pixels in its (2*radius+1)^2 neighbourhood, clipped to
    the search region. The largest count wins if it exceeds ``min_cluster``.
    """
    img = as_rgb16(frame)
    w, h = frame_size(img)
    r = region.clip(w, h)
    if r.is_empty():
        return None

    mask = button_color_mask(r.crop(img)).astype(np.uint8)
    rh, rw = mask.shape
    # (rh+1, rw+1) summed-area table
    table = cv2.integral(mask)

    ys = np.arange(0, rh, stride)
    xs = np.arange(0, rw, stride)
    y0 = np.clip(ys - radius, 0, rh)[:, None]
    y1 = np.clip(ys + radius + 1, 0, rh)[:, None]
    x0 = np.clip(xs - radius, 0, rw)[None, :]
    x1 = np.clip(xs + radius + 1, 0, rw)[None, :]
    counts = table[y1, x1] - table[y0, x1] - table[y1, x0] + table[y0, x0]
    counts = np.where(mask[::stride, ::stride].astype(bool), counts, 0)

    iy, ix = np.unravel_index(int(np.argmax(counts)), counts.shape)
    size = int(counts[iy, ix])
    if size <= min_cluster:
        return None
    return r.x0 + int(xs[ix]), r.y0 + int(ys[iy]), size


def edge_map(frame: np.ndarray, threshold: int = EDGE_COLOR_DISTANCE) -> np.ndarray:
    """Boolean (H-1, W-1) map: colour jump to the right or lower neighbour."""
    img = as_rgb16(frame)
    right = color_difference(img[:-1, 1:], img[:-1, :-1]) > threshold
    below = color_difference(img[1:, :-1], img[:-1, :-1]) > threshold
    return right | below


def detect_button_by_edge(
    frame: np.ndarray,
    region: Region,
    window: Tuple[int, int] = (100, 50),
    stride: int = 5,
    sample_step: int = 2,
    min_ratio: float = EDGE_RATIO_THRESHOLD,
) -> Optional[Tuple[int, int, float]]:
    """Return (cx, cy, edge_ratio) of the first window dense in edges, or None.

    Windows are visited row-major; windows touching the right or bottom edge
    of the frame are skipped.
    """
    img = as_rgb16(frame)
    w, h = frame_size(img)
    r = region.clip(w, h)
    ww, wh = window
    if r.width <= ww or r.height <= wh:
        return None

    # Only the region (plus one pixel for neighbours) is needed
    x_end = min(w, r.x1 + 1)
    y_end = min(h, r.y1 + 1)
    edges = edge_map(img[r.y0:y_end, r.x0:x_end])

    for y in range(r.y0, r.y1 - wh, stride):
        if y + wh >= h:
            break
        for x in range(r.x0, r.x1 - ww, stride):
            if x + ww >= w:
                break
            ly, lx = y - r.y0, x - r.x0
            samples = edges[ly:ly + wh:sample_step, lx:lx + ww:sample_step]
            if samples.size == 0:
                continue
            ratio = float(samples.mean())
            if ratio > min_ratio:
                return x + ww // 2, y + wh // 2, ratio
    return None
