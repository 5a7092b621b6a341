"""GUI subpackage.

- window: PyQt6 status window (control surface and observability sink)
"""
