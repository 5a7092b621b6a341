"""
Detection engine: answers the two questions the monitor asks about a frame.

- is_match_screen_present(frame): template search OR near-white text ratio
- find_accept_button(frame): template search ranked by verification, then
  colour-cluster and edge-density fallbacks

The engine is a pure query over a frame; it never calls back into the
monitor. Every threshold, scale set and stride comes from a DetectionProfile
so one engine covers both the high-recall and the low-latency tuning.
"""
from __future__ import annotations

from typing import Any, Dict, NamedTuple, Optional, Tuple
import logging
import time

import numpy as np

from ..config.vision import (
    LOOSE_BUTTON,
    LOW_LATENCY,
    OUT_OF_BOUNDS_SCORE,
    PERF_ENABLED,
    SCREEN_RETRY_THRESHOLD,
    SCREEN_THRESHOLD,
    TEXT_RATIO_THRESHOLD,
    DetectionProfile,
)
from .detectors import detect_button_by_color, detect_button_by_edge, near_white_ratio
from .matcher import MatchCandidate, first_hit, iter_hits, scaled_size, scan
from .preprocess import Region, as_rgb16, frame_size
from .similarity import button_color_mask, strict_match

logger = logging.getLogger(__name__)


class TemplateSet(NamedTuple):
    """The two reference images held for one monitoring session."""

    matching: np.ndarray
    accept: np.ndarray


class DetectionEngine:
    """Compose the matcher and detectors into screen/button queries."""

    def __init__(self, templates: TemplateSet, profile: DetectionProfile = LOW_LATENCY) -> None:
        if templates is None or templates.matching is None or templates.accept is None:
            raise ValueError("both templates are required")
        self.matching = as_rgb16(templates.matching)
        self.accept = as_rgb16(templates.accept)
        self.profile = profile
        # Intermediate values of the most recent queries, for diagnostics
        self.last_debug: Dict[str, Any] = {}

    # --------------------------- regions ---------------------------
    def text_region(self, frame: np.ndarray) -> Region:
        w, h = frame_size(frame)
        dx, dy = self.profile.text_box
        return Region.around_center(w, h, dx, dy, dx, dy)

    def button_region(self, frame: np.ndarray) -> Region:
        w, h = frame_size(frame)
        left, up, right, down = self.profile.button_box
        return Region.around_center(w, h, left, up, right, down)

    # --------------------------- matching screen ---------------------------
    def match_screen_by_template(self, frame: np.ndarray) -> Optional[MatchCandidate]:
        p = self.profile
        img = as_rgb16(frame)
        region = Region.full(*frame_size(img))
        cand = scan(img, self.matching, SCREEN_THRESHOLD, region, 1.0, p.stride, p.sample_step, p.loose_threshold)
        if cand is not None:
            return cand
        return first_hit(
            img, self.matching, region, p.screen_scales, SCREEN_RETRY_THRESHOLD,
            p.stride, p.sample_step, p.loose_threshold,
        )

    def text_ratio(self, frame: np.ndarray) -> float:
        return near_white_ratio(frame, self.text_region(frame), stride=3)

    def is_match_screen_present(self, frame: np.ndarray) -> bool:
        t0 = time.perf_counter()
        img = as_rgb16(frame)
        cand = self.match_screen_by_template(img)
        ratio = None
        present = cand is not None
        if not present:
            ratio = self.text_ratio(img)
            present = ratio > TEXT_RATIO_THRESHOLD
        self.last_debug["match_screen"] = {
            "template": None if cand is None else (cand.x, cand.y, round(cand.score, 3), cand.scale),
            "text_ratio": ratio,
            "present": present,
            "ms": (time.perf_counter() - t0) * 1000.0,
        }
        if PERF_ENABLED or logger.isEnabledFor(logging.DEBUG):
            logger.debug("engine: match screen %s", self.last_debug["match_screen"])
        return present

    # --------------------------- accept button ---------------------------
    def find_accept_button(self, frame: np.ndarray) -> Optional[MatchCandidate]:
        """Locate the accept button; the returned score is its verification score."""
        t0 = time.perf_counter()
        img = as_rgb16(frame)
        region = self.button_region(img)
        debug: Dict[str, Any] = {"region": (region.x0, region.y0, region.x1, region.y1)}
        self.last_debug["accept_button"] = debug

        best = self._button_by_template(img, region)
        if best is None:
            hit = detect_button_by_color(img, region)
            if hit is not None:
                x, y, size = hit
                debug["cluster_size"] = size
                best = MatchCandidate(x, y, self.verify(img, (x, y), 1.0), 1.0, "color")
        if best is None:
            hit = detect_button_by_edge(img, region)
            if hit is not None:
                x, y, ratio = hit
                debug["edge_ratio"] = round(ratio, 3)
                best = MatchCandidate(x, y, self.verify(img, (x, y), 1.0), 1.0, "edge")

        debug["result"] = None if best is None else (best.x, best.y, round(best.score, 3), best.method)
        debug["ms"] = (time.perf_counter() - t0) * 1000.0
        if PERF_ENABLED or logger.isEnabledFor(logging.DEBUG):
            logger.debug("engine: accept button %s", debug)
        return best

    def _button_by_template(self, img: np.ndarray, region: Region) -> Optional[MatchCandidate]:
        p = self.profile
        best: Optional[MatchCandidate] = None
        best_score = 0.0
        hits = iter_hits(
            img, self.accept, region, p.button_scales, p.button_thresholds,
            p.stride, p.sample_step, max(p.loose_threshold, LOOSE_BUTTON),
        )
        for cand in hits:
            score = self.verify(img, cand.position, cand.scale)
            if score > best_score:
                best_score = score
                best = MatchCandidate(cand.x, cand.y, score, cand.scale, "template")
        return best

    # --------------------------- verification ---------------------------
    def verify(self, frame: np.ndarray, position: Tuple[int, int], scale: float = 1.0) -> float:
        """Exhaustive strict-match ratio of the accept template plus a colour bonus.

        A footprint that leaves the frame yields OUT_OF_BOUNDS_SCORE instead
        of zero so weak detections remain usable. Never negative; a perfect
        in-bounds match scores at least 1.0.
        """
        img = as_rgb16(frame)
        w, h = frame_size(img)
        sw, sh = scaled_size(self.accept, scale)
        x0 = int(position[0]) - sw // 2
        y0 = int(position[1]) - sh // 2
        if x0 < 0 or y0 < 0 or x0 + sw >= w or y0 + sh >= h:
            return OUT_OF_BOUNDS_SCORE
        th, tw = self.accept.shape[:2]
        ys = y0 + (np.arange(th) * scale).astype(np.int64)
        xs = x0 + (np.arange(tw) * scale).astype(np.int64)
        sampled = img[ys[:, None], xs[None, :]]
        ratio = float(strict_match(sampled, self.accept).mean())
        return ratio + self.color_bonus(img, position)

    @staticmethod
    def color_bonus(frame: np.ndarray, position: Tuple[int, int], radius: int = 20, step: int = 4) -> float:
        img = as_rgb16(frame)
        w, h = frame_size(img)
        cx, cy = int(position[0]), int(position[1])
        offsets = np.arange(-radius, radius + 1, step)
        ys = cy + offsets
        xs = cx + offsets
        ys = ys[(ys >= 0) & (ys < h)]
        xs = xs[(xs >= 0) & (xs < w)]
        if ys.size == 0 or xs.size == 0:
            return 0.0
        ratio = float(button_color_mask(img[ys[:, None], xs[None, :]]).mean())
        if ratio > 0.3:
            return 0.2
        if ratio > 0.1:
            return 0.1
        return 0.0
