"""
Sparse-sampled, multi-scale template matching.

This module provides pure functions that take numpy frames and return
MatchCandidate values. The detection engine composes them across scale and
threshold sets.

Scoring: for a window origin, template pixels are sampled every
``sample_step`` pixels, mapped into the frame at ``origin + int(t * scale)``
and compared with the loose colour predicate. The score is the fraction of
matching samples. Window origins advance by ``stride`` in row-major order.

Scans that carry a threshold stop scoring a window as soon as its
remaining samples cannot lift it above that threshold, so negative frames
are rejected after a fraction of the samples. Returned candidates are the
same as with full scoring.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Sequence, Tuple
import logging

import numpy as np

from .preprocess import Region, as_rgb16, frame_size
from .similarity import LOOSE_BUTTON, loose_match

logger = logging.getLogger(__name__)

# Samples scored between two pruning passes
PRUNE_CHUNK = 64
# Below this share of live windows, scoring switches to gathering only those
SPARSE_FRACTION = 0.25


@dataclass(frozen=True)
class MatchCandidate:
    """A located center point and its score.

    Scores are not probabilities: verification adds a colour bonus, so values
    up to about 1.2 are normal.
    """

    x: int
    y: int
    score: float
    scale: float = 1.0
    method: str = "template"

    @property
    def position(self) -> Tuple[int, int]:
        return (self.x, self.y)


def scaled_size(template: np.ndarray, scale: float) -> Tuple[int, int]:
    """Return (w, h) of the template rendered at ``scale``."""
    th, tw = template.shape[:2]
    return max(1, int(round(tw * scale))), max(1, int(round(th * scale)))


def _sample_points(template: np.ndarray, scale: float, sample_step: int) -> Tuple[np.ndarray, ...]:
    """Sampled template coordinates and their frame offsets inside the scaled window."""
    th, tw = template.shape[:2]
    sw, sh = scaled_size(template, scale)
    ty, tx = np.meshgrid(np.arange(0, th, sample_step), np.arange(0, tw, sample_step), indexing="ij")
    ty, tx = ty.ravel(), tx.ravel()
    fy = (ty * scale).astype(np.int64)
    fx = (tx * scale).astype(np.int64)
    keep = (fx < sw) & (fy < sh)
    return tx[keep], ty[keep], fx[keep], fy[keep]


def score_map(
    frame: np.ndarray,
    template: np.ndarray,
    region: Region,
    scale: float = 1.0,
    stride: int = 2,
    sample_step: int = 2,
    loose_threshold: int = LOOSE_BUTTON,
    threshold: Optional[float] = None,
) -> Optional[Tuple[np.ndarray, Region, Tuple[int, int]]]:
    """Similarity score for every window origin in ``region``.

    Returns (scores[ny, nx], clipped_region, (scaled_w, scaled_h)), or None
    when the scaled template does not fit in the region.

    With ``threshold`` the samples are scored in chunks of PRUNE_CHUNK.
    After each chunk, windows whose matches plus remaining samples can no
    longer exceed ``threshold`` are dropped and reported as -1. Every other
    score is exact. None is also returned once no window is left.
    """
    img = as_rgb16(frame)
    tpl = as_rgb16(template)
    w, h = frame_size(img)
    r = region.clip(w, h)
    sw, sh = scaled_size(tpl, scale)
    if r.width < sw or r.height < sh:
        return None

    stride = max(1, int(stride))
    nx = (r.width - sw) // stride + 1
    ny = (r.height - sh) // stride + 1
    tx, ty, fx, fy = _sample_points(tpl, scale, max(1, int(sample_step)))
    n = int(tx.size)
    if n == 0:
        return None

    colors = tpl[ty, tx]
    crop = r.crop(img)
    # A sample's pixels across all window origins are one block of the
    # plane holding every stride-th pixel at the sample's residue.
    planes: Dict[Tuple[int, int], np.ndarray] = {}
    counts = np.zeros(ny * nx, dtype=np.int32)
    dense = counts.reshape(ny, nx)
    alive: Optional[np.ndarray] = None

    for start in range(0, n, PRUNE_CHUNK):
        stop = min(n, start + PRUNE_CHUNK)
        if alive is None:
            for i in range(start, stop):
                qy, ry = divmod(int(fy[i]), stride)
                qx, rx = divmod(int(fx[i]), stride)
                plane = planes.get((ry, rx))
                if plane is None:
                    plane = planes[ry, rx] = np.ascontiguousarray(crop[ry::stride, rx::stride])
                window = plane[qy:qy + ny, qx:qx + nx]
                dense += loose_match(window, colors[i], loose_threshold)
        else:
            oy = (alive // nx) * stride
            ox = (alive % nx) * stride
            pixels = crop[oy[:, None] + fy[None, start:stop], ox[:, None] + fx[None, start:stop]]
            counts[alive] += loose_match(pixels, colors[None, start:stop], loose_threshold).sum(axis=1)

        if threshold is None:
            continue
        remaining = n - stop
        if alive is None:
            keep = (counts + remaining) / float(n) > threshold
            live = int(np.count_nonzero(keep))
            if live <= SPARSE_FRACTION * counts.size:
                alive = np.flatnonzero(keep)
        else:
            alive = alive[(counts[alive] + remaining) / float(n) > threshold]
        if alive is not None and alive.size == 0:
            return None

    scores = counts / float(n)
    if threshold is not None:
        # Dropped windows keep stale counts that never exceed the threshold
        scores = np.where(scores > threshold, scores, -1.0)
    return scores.reshape(ny, nx), r, (sw, sh)


def best_window(
    frame: np.ndarray,
    template: np.ndarray,
    region: Region,
    scale: float = 1.0,
    stride: int = 2,
    sample_step: int = 2,
    loose_threshold: int = LOOSE_BUTTON,
    threshold: Optional[float] = None,
) -> Optional[MatchCandidate]:
    """Highest-scoring window; first found wins ties.

    With ``threshold`` only a window scoring strictly above it is returned.
    """
    result = score_map(frame, template, region, scale, stride, sample_step, loose_threshold, threshold)
    if result is None:
        return None
    scores, r, (sw, sh) = result
    # argmax returns the first maximum in row-major order
    iy, ix = np.unravel_index(int(np.argmax(scores)), scores.shape)
    score = float(scores[iy, ix])
    if threshold is not None and score <= threshold:
        return None
    ox = r.x0 + int(ix) * stride
    oy = r.y0 + int(iy) * stride
    return MatchCandidate(ox + sw // 2, oy + sh // 2, score, float(scale))


def scan(
    frame: np.ndarray,
    template: np.ndarray,
    threshold: float,
    region: Region,
    scale: float = 1.0,
    stride: int = 2,
    sample_step: int = 2,
    loose_threshold: int = LOOSE_BUTTON,
) -> Optional[MatchCandidate]:
    """Best window whose sampled score exceeds ``threshold`` (strictly), else None."""
    return best_window(frame, template, region, scale, stride, sample_step, loose_threshold, threshold)


def iter_hits(
    frame: np.ndarray,
    template: np.ndarray,
    region: Region,
    scales: Sequence[float],
    thresholds: Sequence[float],
    stride: int = 2,
    sample_step: int = 2,
    loose_threshold: int = LOOSE_BUTTON,
) -> Iterator[MatchCandidate]:
    """Yield each distinct hit of the threshold x scale cross-product.

    Iterates thresholds outermost, scales innermost. The best window of a
    scale does not depend on the threshold, so each scale is scanned once,
    pruned against the lowest threshold, and a scale already reported is not
    yielded again for a later threshold.
    """
    if not thresholds:
        return
    floor = min(thresholds)
    best_by_scale: Dict[float, Optional[MatchCandidate]] = {}
    reported = set()
    for threshold in thresholds:
        for scale in scales:
            if scale in reported:
                continue
            if scale not in best_by_scale:
                best_by_scale[scale] = best_window(
                    frame, template, region, scale, stride, sample_step, loose_threshold, floor
                )
                cand = best_by_scale[scale]
                logger.debug(
                    "matcher: scale=%.2f best=%s", scale, "-" if cand is None else f"{cand.score:.3f}"
                )
            cand = best_by_scale[scale]
            if cand is not None and cand.score > threshold:
                reported.add(scale)
                yield cand


def first_hit(
    frame: np.ndarray,
    template: np.ndarray,
    region: Region,
    scales: Sequence[float],
    threshold: float,
    stride: int = 2,
    sample_step: int = 2,
    loose_threshold: int = LOOSE_BUTTON,
) -> Optional[MatchCandidate]:
    """First scale (in order) whose best window clears ``threshold``."""
    for scale in scales:
        cand = scan(frame, template, threshold, region, scale, stride, sample_step, loose_threshold)
        if cand is not None:
            return cand
    return None
