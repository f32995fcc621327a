"""Rich output rendering for CLI."""

import logging
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.traceback import Traceback

from .themes import get_theme
from ..config.cli_config import CLIConfig
from ..models.turn import TurnOutcome

logger = logging.getLogger(__name__)

INTERRUPTED_NOTICE = "[!] Interrupted by user."


class OutputRenderer:
    """
    Rich output renderer for CLI.

    Handles panels, turn outcomes and status messages.
    """

    def __init__(
        self,
        config: Optional[CLIConfig] = None,
        console: Optional[Console] = None,
    ):
        """
        Initialize output renderer.

        Args:
            config: CLI configuration
            console: Rich console (creates new if not provided)
        """
        self.config = config or CLIConfig()
        self.console = console or Console()
        self.theme = get_theme(self.config.theme)

    def render_panel(
        self,
        content: str,
        title: Optional[str] = None,
        style: str = "blue",
    ) -> None:
        """
        Render content in a panel.

        Args:
            content: Panel content
            title: Panel title
            style: Border style
        """
        self.console.print(Panel(escape(content), title=title, border_style=style))

    def render_outcome(self, outcome: TurnOutcome) -> None:
        """
        Render the end of a turn. Completed text was already streamed.

        Args:
            outcome: Turn outcome
        """
        if outcome.is_cancelled:
            self.render_warning(INTERRUPTED_NOTICE)
        elif outcome.is_failed:
            self.render_error(f"Error: {outcome.reason}")

    def render_error(self, error: Exception | str) -> None:
        """
        Render an error message.

        Args:
            error: Exception or error message
        """
        color = self.theme.error_color
        if isinstance(error, Exception):
            self.console.print(f"[{color}]Error: {escape(str(error))}[/{color}]", highlight=False)

            # Show traceback in debug mode
            if logger.isEnabledFor(logging.DEBUG) and error.__traceback__ is not None:
                self.console.print(Traceback.from_exception(type(error), error, error.__traceback__))
        else:
            self.console.print(f"[{color}]{escape(error)}[/{color}]", highlight=False)

    def render_warning(self, message: str) -> None:
        """Render a warning message."""
        self.console.print(f"[{self.theme.warning_color}]{escape(message)}[/{self.theme.warning_color}]", highlight=False)

    def render_success(self, message: str) -> None:
        """Render a success message."""
        self.console.print(f"[{self.theme.success_color}]{escape(message)}[/{self.theme.success_color}]")

    def render_info(self, message: str) -> None:
        """Render an info message."""
        self.console.print(f"[{self.theme.info_color}]{escape(message)}[/{self.theme.info_color}]")

    def render_dim(self, message: str) -> None:
        """Render a dimmed message."""
        self.console.print(f"[{self.theme.dim_color}]{escape(message)}[/{self.theme.dim_color}]")
