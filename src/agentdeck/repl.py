"""Main REPL loop implementation."""

import logging
from functools import partial
from typing import List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.key_binding import KeyBindings

from .agents.registry import AgentConfigRegistry
from .commands.base import CommandContext, CommandRegistry
from .commands.builtin import load_builtin_commands
from .commands.config_cmd import ConfigCommand
from .commands.memory_cmd import MemoryCommand, RememberCommand
from .config.cli_config import CLIConfig, get_history_path
from .controller.engine import TurnEngine
from .controller.indicator import SpinnerIndicator
from .controller.keys import KeySource, TerminalKeySource
from .controller.manager import ExecutionBackendManager
from .errors import AgentDeckError
from .input.completer import create_completer
from .input.history import HistoryManager
from .input.parser import InputParser, InputType
from .models.agents import COORDINATOR
from .models.turn import Attachment
from .output.renderer import OutputRenderer
from .output.streaming import ConsoleSink
from .runtime.discovery import discover_models
from .store.action_log import ActionLog
from .store.config_store import ConfigStore

logger = logging.getLogger(__name__)


class REPL:
    """
    Main REPL (Read-Eval-Print Loop) implementation.

    CRITICAL: Uses prompt_toolkit with prompt_async() for non-blocking IO.
    CRITICAL: Rich Live display must stop before prompting for input.
    """

    def __init__(
        self,
        manager: ExecutionBackendManager,
        registry: AgentConfigRegistry,
        store: ConfigStore,
        engine: TurnEngine,
        commands: CommandRegistry,
        renderer: OutputRenderer,
        config: CLIConfig,
        action_log: Optional[ActionLog] = None,
        project_path: Optional[str] = None,
        parser: Optional[InputParser] = None,
    ):
        """
        Initialize REPL.

        Args:
            manager: Execution backend manager
            registry: Agent config registry
            store: Config store
            engine: Turn engine
            commands: Command registry
            renderer: Output renderer
            config: CLI configuration
            action_log: Action log
            project_path: Absolute path of the current project
            parser: Input parser
        """
        self.manager = manager
        self.registry = registry
        self.store = store
        self.engine = engine
        self.commands = commands
        self.renderer = renderer
        self.console = renderer.console
        self.config = config
        self.action_log = action_log
        self.project_path = project_path
        self.parser = parser or InputParser()

        self.history_manager = HistoryManager(get_history_path(config), config.max_history_size)

        # Prompt sessions are lazily initialized (only for interactive use)
        self._prompt_session: Optional[PromptSession] = None
        self._question_session: Optional[PromptSession] = None

    def _create_key_bindings(self) -> KeyBindings:
        """
        Create custom key bindings.

        Returns:
            KeyBindings instance
        """
        kb = KeyBindings()

        @kb.add("c-c")
        def handle_ctrl_c(event):
            """Handle Ctrl+C - cancel current input."""
            event.current_buffer.reset()

        @kb.add("c-d")
        def handle_ctrl_d(event):
            """Handle Ctrl+D - exit."""
            event.app.exit(exception=EOFError)

        return kb

    @property
    def prompt_session(self) -> PromptSession:
        """
        Lazily initialize prompt session.

        Only creates the PromptSession when actually needed (interactive mode).
        """
        if self._prompt_session is None:
            self._prompt_session = PromptSession(
                history=self.history_manager.get_history(),
                auto_suggest=AutoSuggestFromHistory(),
                key_bindings=self._create_key_bindings(),
                completer=create_completer(self.commands),
                complete_while_typing=True,
            )
        return self._prompt_session

    async def ask(self, message: str) -> str:
        """
        Ask the user one question outside the main history.

        Args:
            message: Prompt text

        Returns:
            The answer (empty on Ctrl+C)
        """
        if self._question_session is None:
            self._question_session = PromptSession()
        try:
            return await self._question_session.prompt_async(message)
        except KeyboardInterrupt:
            return ""

    def _create_context(self) -> CommandContext:
        return CommandContext(
            manager=self.manager,
            registry=self.registry,
            store=self.store,
            engine=self.engine,
            renderer=self.renderer,
            ask=self.ask,
            list_models=partial(discover_models, ollama_base_url=self.config.ollama_base_url),
            config=self.config,
            action_log=self.action_log,
            project_path=self.project_path,
        )

    async def run(self) -> None:
        """Main REPL loop."""
        self.history_manager.trim_history()
        self._display_welcome()

        while True:
            try:
                user_input = await self.prompt_session.prompt_async(self._get_prompt())

                if not await self._process_input(user_input):
                    break

            except KeyboardInterrupt:
                # Ctrl+C pressed - reset and continue
                self.console.print()
                continue

            except EOFError:
                break

            except SystemExit:
                # /quit command
                break

            except AgentDeckError as e:
                self.renderer.render_error(e)

            except Exception as e:
                logger.error(f"REPL error: {e}")
                self.renderer.render_error(e)

        self._display_goodbye()

    async def _process_input(self, user_input: str) -> bool:
        """
        Process one line of user input.

        Args:
            user_input: Raw user input

        Returns:
            False when the user asked to leave
        """
        parsed = self.parser.parse(user_input)

        if parsed.type == InputType.EMPTY:
            return True

        if parsed.type == InputType.EXIT:
            return False

        if parsed.type == InputType.COMMAND:
            await self._handle_command(parsed.command_name or "", parsed.command_args or "")
        else:
            await self._handle_message(parsed.content, parsed.attachments)

        return True

    async def _handle_command(self, cmd_name: str, args: str) -> None:
        """
        Handle a slash command.

        Args:
            cmd_name: Command name (without /)
            args: Command arguments
        """
        command = self.commands.get(cmd_name)

        if not command:
            self.renderer.render_error(f"Unknown command: /{cmd_name}")
            self.renderer.render_dim("Type /help for available commands")
            return

        try:
            result = await command.execute(args, self._create_context())
        except SystemExit:
            raise
        except AgentDeckError as e:
            self.renderer.render_error(e)
            return

        # Commands may hand back text to send as a turn
        if result:
            await self._handle_message(result)

    async def _handle_message(
        self,
        message: str,
        attachments: Optional[List[Attachment]] = None,
    ) -> None:
        """
        Send a message to the coordinator and stream the answer.

        Args:
            message: User message
            attachments: Images to send along
        """
        if attachments:
            names = ", ".join(a.name for a in attachments)
            self.renderer.render_dim(f"Attached: {names}")

        outcome = await self.manager.run_turn(self.engine, message, attachments)
        self.renderer.render_outcome(outcome)

    def _get_prompt(self) -> str:
        return f"{self.manager.kind.value.lower()}> "

    def _display_welcome(self) -> None:
        """Display welcome message."""
        coordinator = self.registry.get(COORDINATOR)
        self.console.print()
        self.console.print("[bold green]agentdeck[/bold green]")
        self.console.print(
            f"Runner: {self.manager.kind.value} | "
            f"Coordinator: {coordinator.provider.value} / {coordinator.model_name}"
        )
        self.console.print(f"Session: {self.manager.session.session_id}")
        self.console.print(
            "Type [bold]/help[/bold] for commands, [bold]exit[/bold] to quit, "
            "[bold]Esc[/bold] to interrupt the agent"
        )
        self.console.print()

    def _display_goodbye(self) -> None:
        """Display goodbye message."""
        self.console.print()
        self.console.print("[dim]Goodbye![/dim]")


def create_repl(
    manager: ExecutionBackendManager,
    registry: AgentConfigRegistry,
    store: ConfigStore,
    config: CLIConfig,
    renderer: Optional[OutputRenderer] = None,
    action_log: Optional[ActionLog] = None,
    project_path: Optional[str] = None,
    keys: Optional[KeySource] = None,
) -> REPL:
    """
    Create a REPL instance with all dependencies.

    Args:
        manager: Started execution backend manager
        registry: Agent config registry
        store: Config store
        config: CLI configuration
        renderer: Output renderer (created from config if omitted)
        action_log: Action log
        project_path: Absolute path of the current project
        keys: Cancel-key source (terminal by default)

    Returns:
        Configured REPL instance
    """
    renderer = renderer or OutputRenderer(config)

    commands = CommandRegistry()
    load_builtin_commands(commands)
    commands.register(ConfigCommand())
    commands.register(MemoryCommand())
    commands.register(RememberCommand())

    engine = TurnEngine(
        sink=ConsoleSink(renderer.console, style=renderer.theme.agent_color),
        keys=keys or TerminalKeySource(),
        indicator=SpinnerIndicator(renderer.console, style=renderer.theme.spinner),
        action_log=action_log,
        poll_interval=config.poll_interval,
    )

    return REPL(
        manager=manager,
        registry=registry,
        store=store,
        engine=engine,
        commands=commands,
        renderer=renderer,
        config=config,
        action_log=action_log,
        project_path=project_path,
    )
