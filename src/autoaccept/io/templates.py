"""Reference store: loads the two template images for a monitoring session.

Templates live in a directory (``resources/`` at the repo root unless the
``templates_dir`` setting points elsewhere) as:

- matching.png       matching/queue screen signature
- accept_button.png  accept button signature

Images are decoded with OpenCV and returned as RGB uint8 arrays.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Union

import cv2  # type: ignore
import numpy as np  # type: ignore

from ..vision.engine import TemplateSet
from .errors import TemplateLoadFailure

TEMPLATE_FILES: Dict[str, str] = {
    "matching": "matching.png",
    "accept": "accept_button.png",
}


def _repo_root() -> Path:
    # io/ -> autoaccept/ -> src/ -> repo
    return Path(__file__).resolve().parents[3]


def default_templates_dir() -> Path:
    return _repo_root() / "resources"


class ReferenceStore:
    """Loads named templates from a directory."""

    def __init__(self, base_dir: Optional[Union[str, Path]] = None) -> None:
        self.base_dir = Path(base_dir) if base_dir else default_templates_dir()
        self._logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config_manager) -> "ReferenceStore":
        configured = (config_manager.get("templates_dir", "") or "").strip()
        return cls(configured or None)

    def path_for(self, name: str) -> Path:
        try:
            return self.base_dir / TEMPLATE_FILES[name]
        except KeyError:
            raise TemplateLoadFailure(f"unknown template '{name}'") from None

    def load(self, name: str) -> np.ndarray:
        """Decode one template as RGB. Raises TemplateLoadFailure."""
        path = self.path_for(name)
        if not path.exists():
            raise TemplateLoadFailure(f"template '{name}' not found at {path}")
        img = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if img is None or img.size == 0:
            raise TemplateLoadFailure(f"template '{name}' could not be decoded ({path})")
        rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
        self._logger.debug("templates: loaded %s %dx%d", name, rgb.shape[1], rgb.shape[0])
        return rgb

    def load_all(self) -> TemplateSet:
        """Load both templates; either failing aborts the whole load."""
        return TemplateSet(matching=self.load("matching"), accept=self.load("accept"))
