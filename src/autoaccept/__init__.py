"""AutoAccept: watches the screen for the match-found dialog and clicks accept."""

__version__ = "0.1.0"
