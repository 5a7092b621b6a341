"""IO subpackage for platform-specific integrations.

- capture: mss-backed frame source
- templates: reference store for the template images
- controls: pointer click injection
- errors: error kinds raised by the adapters
"""
from .errors import AutoAcceptError, CaptureFailure, ClickFailure, TemplateLoadFailure
from .capture import ScreenCapture
from .templates import ReferenceStore
from .controls import ClickController

__all__ = [
    "AutoAcceptError",
    "CaptureFailure",
    "ClickFailure",
    "TemplateLoadFailure",
    "ScreenCapture",
    "ReferenceStore",
    "ClickController",
]
