"""Streaming output sinks for agent responses."""

from abc import ABC, abstractmethod
from typing import Optional

from rich.console import Console


class StreamSink(ABC):
    """Destination for fragment text, written in arrival order."""

    @abstractmethod
    def write(self, text: str) -> None:
        """Write one fragment's text."""

    def finish(self) -> None:
        """Called once when the turn ends."""


class ConsoleSink(StreamSink):
    """
    Writes fragments to a rich console as they arrive.

    GOTCHA: Markup is disabled; model output often contains [brackets].
    """

    def __init__(self, console: Console, style: Optional[str] = None):
        """
        Initialize console sink.

        Args:
            console: Rich console
            style: Optional style for response text
        """
        self.console = console
        self.style = style
        self._wrote = False

    def write(self, text: str) -> None:
        self.console.print(text, end="", style=self.style, markup=False, highlight=False)
        self._wrote = True

    def finish(self) -> None:
        # Ensure newline after streaming completes
        if self._wrote:
            self.console.print()
        self._wrote = False
