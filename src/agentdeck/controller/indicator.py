"""Waiting indicator shown until the first fragment arrives."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner

logger = logging.getLogger(__name__)


class WaitingIndicator(ABC):
    """Indicator lifecycle: start(), any number of pulse(), one clear()."""

    @abstractmethod
    def start(self) -> None:
        """Show the indicator."""

    @abstractmethod
    def pulse(self) -> None:
        """Advance the animation by one tick."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the indicator from the screen."""


class SpinnerIndicator(WaitingIndicator):
    """
    Rich spinner drawn on a transient Live display.

    CRITICAL: Rich Live display must stop before prompting for input.
    The engine clears it before any fragment is printed.
    """

    def __init__(
        self,
        console: Console,
        message: str = "Thinking...",
        style: str = "dots",
    ):
        """
        Initialize spinner indicator.

        Args:
            console: Rich console
            message: Spinner message
            style: Spinner style
        """
        self.console = console
        self.message = message
        self.style = style
        self._live: Optional[Live] = None

    def start(self) -> None:
        spinner = Spinner(self.style, text=f"[dim]{self.message}[/dim]")
        self._live = Live(
            spinner,
            console=self.console,
            transient=True,
            auto_refresh=False,
            redirect_stdout=False,
            redirect_stderr=False,
        )
        self._live.start()

    def pulse(self) -> None:
        if self._live is not None:
            self._live.refresh()

    def clear(self) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None
