"""Pytest configuration.

Ensures the src directory is on sys.path so tests can import `autoaccept.*`,
and provides small synthetic frames and templates shared by the vision tests.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
for p in (str(PROJECT_ROOT), str(SRC_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)

GRAY = (128, 128, 128)
TEAL = (0, 160, 140)


def _blank(width, height, color=GRAY):
    frame = np.empty((height, width, 3), dtype=np.uint8)
    frame[:, :] = color
    return frame


@pytest.fixture
def gray_frame():
    return _blank(640, 480)


@pytest.fixture
def matching_template():
    # 40x30: red left half, blue right half, yellow band on top
    tpl = np.zeros((30, 40, 3), dtype=np.uint8)
    tpl[:, :20] = (255, 0, 0)
    tpl[:, 20:] = (0, 0, 255)
    tpl[:6, :] = (255, 255, 0)
    return tpl


@pytest.fixture
def accept_template():
    # 60x24 teal button with a dark label bar
    tpl = np.empty((24, 60, 3), dtype=np.uint8)
    tpl[:, :] = TEAL
    tpl[10:14, 20:40] = (20, 20, 20)
    return tpl


@pytest.fixture
def paste():
    def _paste(frame, template, x, y):
        out = frame.copy()
        h, w = template.shape[:2]
        out[y:y + h, x:x + w] = template[:, :, :3]
        return out

    return _paste
