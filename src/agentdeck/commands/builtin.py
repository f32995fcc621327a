"""Built-in slash commands."""

import logging
from pathlib import Path
from typing import List, Optional

from rich.panel import Panel
from rich.table import Table

from .base import BaseCommand, CommandContext, CommandRegistry
from ..config.cli_config import get_store_path, get_summary_path
from ..controller.manager import SwitchResult
from ..errors import BackendBuildFailure, InvalidSelection, ProviderError, StoreFailure
from ..models.agents import COORDINATOR, Provider, RunnerKind

logger = logging.getLogger(__name__)

SUMMARIZE_PROMPT = (
    "Summarize the key technical context, decisions, open tasks and user "
    "preferences from this session, so a future session can pick up where we left off."
)


class HelpCommand(BaseCommand):
    """Show help information."""

    name = "help"
    description = "Show help for commands"
    arguments = "[command]"

    def __init__(self, registry: CommandRegistry):
        """Initialize with command registry reference."""
        self.registry = registry

    def complete_args(self, previous: List[str]) -> List[str]:
        return [] if previous else [c.name for c in self.registry.list_commands()]

    async def execute(
        self,
        args: str,
        context: CommandContext,
    ) -> Optional[str]:
        """Execute help command."""
        if args.strip():
            cmd_name = args.strip().lstrip("/")
            command = self.registry.get(cmd_name)
            if command:
                context.console.print(Panel(
                    command.get_help(),
                    title=f"/{cmd_name}",
                    border_style="blue",
                ))
            else:
                context.renderer.render_error(f"Unknown command: /{cmd_name}")
            return None

        table = Table(title="Available Commands", show_header=True)
        table.add_column("Command", style="cyan")
        table.add_column("Arguments", style="dim")
        table.add_column("Description")

        for cmd in sorted(self.registry.list_commands(), key=lambda c: c.name):
            table.add_row(f"/{cmd.name}", cmd.arguments, cmd.description)

        context.console.print(table)
        context.console.print("\nPress [bold]Esc[/bold] while the agent is answering to interrupt it.")
        context.console.print("Type /help <command> for more details, [bold]exit[/bold] to quit.")
        return None


class QuitCommand(BaseCommand):
    """Exit the CLI."""

    name = "quit"
    description = "Exit the CLI"
    aliases = ["exit", "q"]

    async def execute(
        self,
        args: str,
        context: CommandContext,
    ) -> Optional[str]:
        """Execute quit command."""
        # Handled specially in the REPL
        raise SystemExit(0)


class StatusCommand(BaseCommand):
    """Show runner, agents and session."""

    name = "status"
    description = "Show runner, agent configs and session"

    async def execute(
        self,
        args: str,
        context: CommandContext,
    ) -> Optional[str]:
        """Execute status command."""
        manager = context.manager

        table = Table(title="Status", show_header=False)
        table.add_column("Property", style="cyan")
        table.add_column("Value")

        table.add_row("Runner", manager.kind.value)
        if manager.has_session:
            table.add_row("Session ID", manager.session.session_id)
        else:
            table.add_row("Session ID", "(created on next turn)")
        if manager.pending_summary is not None:
            table.add_row("Pending Summary", "sent with the next message")
        table.add_row("Project", context.project_path)
        table.add_row("Config Store", str(get_store_path(context.config)))

        try:
            project_count = str(len(context.store.get_all_memories()))
        except StoreFailure as e:
            logger.warning(f"Could not count stored projects: {e}")
            project_count = "unavailable"
        table.add_row("Stored Projects", project_count)

        context.console.print(table)

        agents = Table(title="Agents", show_header=True)
        agents.add_column("Agent", style="cyan")
        agents.add_column("Provider")
        agents.add_column("Model")
        for name in context.registry.names():
            cfg = context.registry.get(name)
            label = f"{name} *" if name == COORDINATOR else name
            agents.add_row(label, cfg.provider.value, cfg.model_name)

        context.console.print(agents)
        context.renderer.render_dim("* coordinator: changing it rebuilds the runner")
        return None


class RunnerCommand(BaseCommand):
    """Switch the execution runner."""

    name = "runner"
    description = "Switch execution runner (starts a new session)"
    arguments = "[kind]"

    def complete_args(self, previous: List[str]) -> List[str]:
        return [] if previous else [k.value for k in RunnerKind]

    async def execute(
        self,
        args: str,
        context: CommandContext,
    ) -> Optional[str]:
        """Execute runner command."""
        current = context.manager.kind
        answer = args.strip()

        if not answer:
            context.console.print("[cyan]Runners:[/cyan]")
            for index, kind in enumerate(RunnerKind, 1):
                marker = " [green](current)[/green]" if kind == current else ""
                context.console.print(f"  {index}. {kind.value}{marker}")
            answer = (await context.ask("Select runner (Enter to cancel): ")).strip()
            if not answer:
                context.renderer.render_dim("Switch cancelled.")
                return None

        try:
            kind = RunnerKind.parse(answer)
        except ValueError as e:
            raise InvalidSelection(str(e)) from None

        async def confirm(old: RunnerKind, new: RunnerKind) -> bool:
            reply = await context.ask(
                f"Switch from {old.value} to {new.value}? This starts a new session. (y/N): "
            )
            return reply.strip().lower() in ("y", "yes")

        try:
            result = await context.manager.request_switch(kind, confirm)
        except BackendBuildFailure as e:
            context.renderer.render_error(f"Could not switch runner: {e}")
            context.renderer.render_dim(f"Still using {current.value}.")
            return None

        if result == SwitchResult.UNCHANGED:
            context.renderer.render_info(f"Already using {kind.value}.")
        elif result == SwitchResult.DECLINED:
            context.renderer.render_dim("Switch cancelled.")
        else:
            context.renderer.render_success(
                f"Switched to {kind.value}. New session: {context.manager.session.session_id}"
            )
        return None


class ResetCommand(BaseCommand):
    """Start a fresh session."""

    name = "reset"
    description = "Start a fresh session on the current runner"
    aliases = ["clear"]

    async def execute(
        self,
        args: str,
        context: CommandContext,
    ) -> Optional[str]:
        """Execute reset command."""
        session = await context.manager.reset()
        context.renderer.render_success(f"Session reset. New session: {session.session_id}")
        return None


class CompactCommand(BaseCommand):
    """Summarize and continue in a fresh session."""

    name = "compact"
    description = "Summarize the session and continue in a fresh one"

    async def execute(
        self,
        args: str,
        context: CommandContext,
    ) -> Optional[str]:
        """Execute compact command."""
        context.renderer.render_dim("Compacting session...")
        summary = await context.manager.compact()
        context.renderer.render_panel(summary, title="Session Summary", style="cyan")
        context.renderer.render_success(
            f"Session compacted. New session: {context.manager.session.session_id}"
        )
        context.renderer.render_dim("The summary will be sent with your next message.")
        return None


class SummarizeCommand(BaseCommand):
    """Write a session summary for future sessions."""

    name = "summarize"
    description = "Summarize this session into the summary file for next time"

    async def execute(
        self,
        args: str,
        context: CommandContext,
    ) -> Optional[str]:
        """Execute summarize command."""
        outcome = await context.manager.run_turn(context.engine, SUMMARIZE_PROMPT)
        context.renderer.render_outcome(outcome)

        if not outcome.is_completed or not outcome.text.strip():
            context.renderer.render_warning("No summary written.")
            return None

        path = get_summary_path(context.config, Path(context.project_path))
        try:
            path.write_text(outcome.text, encoding="utf-8")
        except OSError as e:
            context.renderer.render_error(f"Could not write {path}: {e}")
            return None

        context.renderer.render_success(f"Summary saved to {path}")
        return None


class ModelsCommand(BaseCommand):
    """List selectable models."""

    name = "models"
    description = "List models for a provider (default: coordinator's)"
    arguments = "[provider]"

    def complete_args(self, previous: List[str]) -> List[str]:
        return [] if previous else [p.value for p in Provider]

    async def execute(
        self,
        args: str,
        context: CommandContext,
    ) -> Optional[str]:
        """Execute models command."""
        if args.strip():
            try:
                provider = Provider.parse(args)
            except ValueError:
                raise InvalidSelection(
                    f"Invalid provider: {args.strip()}. Use OLLAMA, GEMINI, or BEDROCK."
                ) from None
        else:
            provider = context.registry.get(COORDINATOR).provider

        try:
            models = await context.list_models(provider)
        except ProviderError as e:
            context.renderer.render_warning(f"Could not list {provider.value} models: {e}")
            return None

        if not models:
            context.renderer.render_dim(f"No {provider.value} models found.")
            return None

        context.console.print(f"[cyan]{provider.value} models:[/cyan]")
        for model in models:
            context.console.print(f"  - {model}")
        return None


class LogsCommand(BaseCommand):
    """Show recent action log entries."""

    name = "logs"
    description = "Show recent action log entries"
    arguments = "[count]"

    async def execute(
        self,
        args: str,
        context: CommandContext,
    ) -> Optional[str]:
        """Execute logs command."""
        if context.action_log is None:
            context.renderer.render_dim("Action log is disabled.")
            return None

        count = 20
        if args.strip():
            if not args.strip().isdigit():
                raise InvalidSelection("Usage: /logs [count]")
            count = int(args.strip())

        entries = context.action_log.recent(count)
        if not entries:
            context.renderer.render_dim("No log entries.")
            return None

        table = Table(title="Action Log", show_header=True)
        table.add_column("Time", style="dim")
        table.add_column("Role", style="cyan")
        table.add_column("Content")
        for entry in entries:
            text = entry.content if len(entry.content) <= 80 else entry.content[:77] + "..."
            table.add_row(entry.timestamp.strftime("%H:%M:%S"), entry.role.value, text)

        context.console.print(table)
        return None


def load_builtin_commands(registry: CommandRegistry) -> None:
    """
    Load all built-in commands into registry.

    Args:
        registry: Command registry to populate
    """
    # Help needs registry reference
    registry.register(HelpCommand(registry))

    registry.register(QuitCommand())
    registry.register(StatusCommand())
    registry.register(RunnerCommand())
    registry.register(ResetCommand())
    registry.register(CompactCommand())
    registry.register(SummarizeCommand())
    registry.register(ModelsCommand())
    registry.register(LogsCommand())
