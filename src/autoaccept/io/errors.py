"""Error kinds raised by the IO adapters."""


class AutoAcceptError(Exception):
    """Base class for recoverable AutoAccept failures."""


class CaptureFailure(AutoAcceptError):
    """The display could not be captured; the current tick is skipped."""


class TemplateLoadFailure(AutoAcceptError):
    """A reference image is missing or cannot be decoded; no session can start."""


class ClickFailure(AutoAcceptError):
    """Pointer injection failed; the monitor retries on a later tick."""
