"""Tab completion for CLI."""

from typing import Iterable, Optional, TYPE_CHECKING

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

if TYPE_CHECKING:
    from ..commands.base import CommandRegistry


class CLICompleter(Completer):
    """
    Completer for slash commands and their arguments.

    Argument candidates come from each command's complete_args().
    """

    def __init__(self, command_registry: Optional["CommandRegistry"] = None):
        """
        Initialize CLI completer.

        Args:
            command_registry: Command registry for slash commands
        """
        self.command_registry = command_registry

    def get_completions(
        self,
        document: Document,
        complete_event,
    ) -> Iterable[Completion]:
        """
        Get completions for current input.

        Args:
            document: Current document
            complete_event: Completion event

        Yields:
            Completion objects
        """
        text = document.text_before_cursor.lstrip()
        if not text.startswith("/") or not self.command_registry:
            return

        parts = text[1:].split(" ")
        if len(parts) == 1:
            yield from self._complete_command(parts[0])
            return

        command = self.command_registry.get(parts[0])
        if command is None:
            return

        done, prefix = [p for p in parts[1:-1] if p], parts[-1]
        for candidate in command.complete_args(done):
            if candidate.lower().startswith(prefix.lower()):
                yield Completion(candidate, start_position=-len(prefix))

    def _complete_command(self, prefix: str) -> Iterable[Completion]:
        """Complete slash command names."""
        for name in self.command_registry.get_all_names():
            if name.startswith(prefix.lower()):
                yield Completion(
                    f"/{name}",
                    start_position=-len(prefix) - 1,  # Include the /
                    display=f"/{name}",
                    display_meta=self._get_command_meta(name),
                )

    def _get_command_meta(self, name: str) -> str:
        command = self.command_registry.get(name)
        if not command:
            return ""
        desc = command.description[:30]
        if len(command.description) > 30:
            desc += "..."
        return desc


def create_completer(command_registry: Optional["CommandRegistry"] = None) -> CLICompleter:
    """
    Create the REPL completer.

    Args:
        command_registry: Command registry

    Returns:
        Completer instance
    """
    return CLICompleter(command_registry)
