"""Vision package: pure pixel predicates, matching and detection.

Submodules:
- preprocess: frame helpers and search-region geometry
- similarity: loose/strict colour predicates and colour classes
- matcher: sparse-sampled multi-scale template matching
- detectors: near-white text, colour-cluster and edge-density heuristics
- engine: DetectionEngine composing the above
"""
from .preprocess import Region, as_rgb16, frame_size
from .similarity import (
    manhattan,
    loose_match,
    strict_match,
    button_color_mask,
    near_white_mask,
)
from .matcher import MatchCandidate, scan, best_window, iter_hits, first_hit
from .detectors import near_white_ratio, detect_button_by_color, detect_button_by_edge
from .engine import DetectionEngine, TemplateSet

__all__ = [
    "Region",
    "as_rgb16",
    "frame_size",
    "manhattan",
    "loose_match",
    "strict_match",
    "button_color_mask",
    "near_white_mask",
    "MatchCandidate",
    "scan",
    "best_window",
    "iter_hits",
    "first_hit",
    "near_white_ratio",
    "detect_button_by_color",
    "detect_button_by_edge",
    "DetectionEngine",
    "TemplateSet",
]
