"""
Vision configuration knobs centralization.

All thresholds, scale ranges, strides and timings live here. The detection
engine and the monitor read a DetectionProfile instead of hardcoding values.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Tuple
import os

# Scale search sets
BUTTON_SCALES: Tuple[float, ...] = (0.5, 0.6, 0.7, 0.8, 0.9, 1.0, 1.1, 1.2, 1.3, 1.5)
SCREEN_SCALES: Tuple[float, ...] = (0.5, 0.7, 0.8, 1.2, 1.5, 2.0)

# Thresholds
BUTTON_THRESHOLDS: Tuple[float, ...] = (0.4, 0.5, 0.6, 0.7)
SCREEN_THRESHOLD: float = 0.6
SCREEN_RETRY_THRESHOLD: float = 0.5
# Manhattan colour distances: loose for scanning, strict for verification
LOOSE_SCAN: int = 120
LOOSE_BUTTON: int = 150
STRICT_COLOR_DISTANCE: int = 60
EDGE_COLOR_DISTANCE: int = 30
NEAR_WHITE_LEVEL: int = 200
TEXT_RATIO_THRESHOLD: float = 0.05
CLUSTER_MIN_SIZE: int = 50
EDGE_RATIO_THRESHOLD: float = 0.15
OUT_OF_BOUNDS_SCORE: float = 0.3

# Environment flags
PROFILE_NAME: str = os.environ.get("AA_VISION_PROFILE", "low_latency")
PERF_ENABLED: bool = os.environ.get("AA_VISION_PERF", "0") == "1"


@dataclass(frozen=True)
class DetectionProfile:
    """Tunable knobs shared by the detection engine and the monitor loop."""

    name: str
    stride: int
    sample_step: int
    loose_threshold: int
    button_thresholds: Tuple[float, ...] = BUTTON_THRESHOLDS
    button_scales: Tuple[float, ...] = BUTTON_SCALES
    screen_scales: Tuple[float, ...] = SCREEN_SCALES
    poll_interval: float = 0.5
    watch_interval: float = 1.0
    settle_duration: float = 5.0
    firing_threshold: float = 0.2
    # Half-extents of the fixed search rectangles around frame center
    text_box: Tuple[int, int] = (200, 100)
    button_box: Tuple[int, int, int, int] = (400, 50, 400, 250)

    def with_overrides(self, **kwargs) -> "DetectionProfile":
        return replace(self, **kwargs)


HIGH_RECALL = DetectionProfile(name="high_recall", stride=2, sample_step=2, loose_threshold=LOOSE_BUTTON)
LOW_LATENCY = DetectionProfile(name="low_latency", stride=5, sample_step=3, loose_threshold=LOOSE_SCAN)

PROFILES: Dict[str, DetectionProfile] = {
    HIGH_RECALL.name: HIGH_RECALL,
    LOW_LATENCY.name: LOW_LATENCY,
}


def get_profile(name: str | None = None) -> DetectionProfile:
    """Return a named profile, falling back to the env/default profile."""
    key = (name or PROFILE_NAME or "").strip().lower()
    return PROFILES.get(key, LOW_LATENCY)


__all__ = [
    "BUTTON_SCALES",
    "SCREEN_SCALES",
    "BUTTON_THRESHOLDS",
    "SCREEN_THRESHOLD",
    "SCREEN_RETRY_THRESHOLD",
    "LOOSE_SCAN",
    "LOOSE_BUTTON",
    "STRICT_COLOR_DISTANCE",
    "EDGE_COLOR_DISTANCE",
    "NEAR_WHITE_LEVEL",
    "TEXT_RATIO_THRESHOLD",
    "CLUSTER_MIN_SIZE",
    "EDGE_RATIO_THRESHOLD",
    "OUT_OF_BOUNDS_SCORE",
    "PROFILE_NAME",
    "PERF_ENABLED",
    "DetectionProfile",
    "HIGH_RECALL",
    "LOW_LATENCY",
    "PROFILES",
    "get_profile",
]
