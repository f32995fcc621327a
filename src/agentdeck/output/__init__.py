"""Output rendering module."""

from .renderer import OutputRenderer
from .streaming import ConsoleSink, StreamSink
from .themes import THEMES, Theme, get_theme

__all__ = [
    "OutputRenderer",
    "ConsoleSink",
    "StreamSink",
    "THEMES",
    "Theme",
    "get_theme",
]
