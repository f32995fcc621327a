"""Project memory commands."""

from typing import List, Optional

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .base import BaseCommand, CommandContext


class MemoryCommand(BaseCommand):
    """/memory command for the current project's saved notes."""

    name = "memory"
    description = "Show or add notes saved for this project"
    arguments = "[show | add <note> | projects]"

    def complete_args(self, previous: List[str]) -> List[str]:
        return [] if previous else ["show", "add", "projects"]

    async def execute(
        self,
        args: str,
        context: CommandContext,
    ) -> Optional[str]:
        """Execute memory command."""
        args_parts = args.strip().split(maxsplit=1)
        subcommand = args_parts[0].lower() if args_parts else "show"
        sub_args = args_parts[1] if len(args_parts) > 1 else ""

        if subcommand == "show":
            return await self._show(context)
        elif subcommand == "add":
            return await self._add(context, sub_args)
        elif subcommand == "projects":
            return await self._projects(context)

        context.renderer.render_warning("Usage: /memory [show | add <note> | projects]")
        return None

    async def _show(self, context: CommandContext) -> Optional[str]:
        memory = context.store.get_memory(context.project_path)
        if not memory:
            context.renderer.render_dim("No notes saved for this project yet.")
            return None
        context.console.print(Panel(escape(memory), title=escape(context.project_path), border_style="cyan"))
        return None

    async def _add(self, context: CommandContext, note: str) -> Optional[str]:
        note = note.strip()
        if not note:
            context.renderer.render_warning("Nothing to remember. Usage: /memory add <note>")
            return None
        context.store.append_memory(context.project_path, note)
        context.renderer.render_success("Saved to project memory.")
        return None

    async def _projects(self, context: CommandContext) -> Optional[str]:
        memories = context.store.get_all_memories()
        if not memories:
            context.renderer.render_dim("No projects have saved notes.")
            return None

        table = Table(title="Projects With Notes", show_header=True)
        table.add_column("Project", style="cyan")
        table.add_column("Notes", justify="right")
        for path, text in sorted(memories.items()):
            table.add_row(path, str(text.count("--- Saved: ")))
        context.console.print(table)
        return None


class RememberCommand(MemoryCommand):
    """Shortcut for /memory add."""

    name = "remember"
    description = "Save a note to this project's memory"
    arguments = "<note>"

    def complete_args(self, previous: List[str]) -> List[str]:
        return []

    async def execute(
        self,
        args: str,
        context: CommandContext,
    ) -> Optional[str]:
        """Execute remember command."""
        return await self._add(context, args)
