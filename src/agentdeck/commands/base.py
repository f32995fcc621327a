"""Base command infrastructure."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, TYPE_CHECKING

from rich.console import Console

if TYPE_CHECKING:
    from ..agents.registry import AgentConfigRegistry
    from ..config.cli_config import CLIConfig
    from ..controller.engine import TurnEngine
    from ..controller.manager import ExecutionBackendManager
    from ..models.agents import Provider
    from ..output.renderer import OutputRenderer
    from ..store.action_log import ActionLog
    from ..store.config_store import ConfigStore

Ask = Callable[[str], Awaitable[str]]


class CommandContext:
    """Context passed to command execution."""

    def __init__(
        self,
        manager: "ExecutionBackendManager",
        registry: "AgentConfigRegistry",
        store: "ConfigStore",
        engine: "TurnEngine",
        renderer: "OutputRenderer",
        ask: Ask,
        list_models: Callable[["Provider"], Awaitable[List[str]]],
        config: "CLIConfig",
        action_log: Optional["ActionLog"] = None,
        project_path: Optional[str] = None,
    ):
        """
        Initialize command context.

        Args:
            manager: Execution backend manager
            registry: Agent config registry
            store: Config store
            engine: Turn engine, for commands that run turns
            renderer: Output renderer
            ask: Prompts the user for one line of input
            list_models: Lists selectable models for a provider
            config: CLI configuration
            action_log: Action log
            project_path: Absolute path of the current project
        """
        self.manager = manager
        self.registry = registry
        self.store = store
        self.engine = engine
        self.renderer = renderer
        self.console: Console = renderer.console
        self.ask = ask
        self.list_models = list_models
        self.config = config
        self.action_log = action_log
        self.project_path = project_path or str(Path.cwd().resolve())


class BaseCommand(ABC):
    """Base class for slash commands."""

    name: str = ""  # Command name (without /)
    description: str = ""  # Help text
    aliases: List[str] = []  # Alternative names
    arguments: str = ""  # Argument hint for help

    @abstractmethod
    async def execute(
        self,
        args: str,
        context: CommandContext,
    ) -> Optional[str]:
        """
        Execute the command.

        Args:
            args: Arguments passed to command
            context: Execution context

        Returns:
            Optional text to submit as a user turn
        """
        pass

    def complete_args(self, previous: List[str]) -> List[str]:
        """
        Candidates for the next argument.

        Args:
            previous: Arguments already typed

        Returns:
            Completion candidates
        """
        return []

    def get_help(self) -> str:
        """
        Get help text for the command.

        Returns:
            Help string
        """
        help_text = f"/{self.name}"
        if self.arguments:
            help_text += f" {self.arguments}"
        if self.description:
            help_text += f"\n  {self.description}"
        if self.aliases:
            help_text += f"\n  Aliases: {', '.join('/' + a for a in self.aliases)}"
        return help_text


class CommandRegistry:
    """Registry for slash commands."""

    def __init__(self):
        """Initialize command registry."""
        self._commands: Dict[str, BaseCommand] = {}
        self._aliases: Dict[str, str] = {}  # alias -> command name

    def register(self, command: BaseCommand) -> None:
        """
        Register a command.

        Args:
            command: Command instance to register
        """
        self._commands[command.name.lower()] = command
        for alias in command.aliases:
            self._aliases[alias.lower()] = command.name.lower()

    def get(self, name: str) -> Optional[BaseCommand]:
        """
        Get a command by name or alias.

        Args:
            name: Command name or alias

        Returns:
            Command instance if found
        """
        name_lower = name.lower()
        if name_lower in self._commands:
            return self._commands[name_lower]
        if name_lower in self._aliases:
            return self._commands[self._aliases[name_lower]]
        return None

    def list_commands(self) -> List[BaseCommand]:
        """
        List all registered commands.

        Returns:
            List of command instances
        """
        return list(self._commands.values())

    def get_all_names(self) -> List[str]:
        """
        Get all command names and aliases.

        Returns:
            Sorted list of all names/aliases
        """
        names = list(self._commands.keys())
        names.extend(self._aliases.keys())
        return sorted(set(names))
