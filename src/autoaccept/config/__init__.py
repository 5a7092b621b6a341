"""Config subpackage.

- vision: central knobs for detection thresholds, scales, strides and timing
"""
from .vision import (
    BUTTON_SCALES,
    SCREEN_SCALES,
    BUTTON_THRESHOLDS,
    PERF_ENABLED,
    DetectionProfile,
    HIGH_RECALL,
    LOW_LATENCY,
    PROFILES,
    get_profile,
)

__all__ = [
    "BUTTON_SCALES",
    "SCREEN_SCALES",
    "BUTTON_THRESHOLDS",
    "PERF_ENABLED",
    "DetectionProfile",
    "HIGH_RECALL",
    "LOW_LATENCY",
    "PROFILES",
    "get_profile",
]
