"""Agent configuration command."""

from typing import List, Optional

from .base import BaseCommand, CommandContext
from ..controller.editor import ConfigEdit, ConfigEditorFlow
from ..errors import BackendBuildFailure
from ..input.parser import InputParser
from ..models.agents import Provider, agent_names


class ConfigCommand(BaseCommand):
    """/config command for per-agent provider and model."""

    name = "config"
    description = "Choose provider and model per agent"
    arguments = "[<agent> <provider> [model]]"

    def complete_args(self, previous: List[str]) -> List[str]:
        if not previous:
            return agent_names()
        if len(previous) == 1:
            return [p.value for p in Provider]
        return []

    async def execute(
        self,
        args: str,
        context: CommandContext,
    ) -> Optional[str]:
        """Execute config command."""
        flow = ConfigEditorFlow(
            registry=context.registry,
            manager=context.manager,
            console=context.console,
            ask=context.ask,
            list_models=context.list_models,
        )

        parts = InputParser.split_args(args)
        try:
            if parts:
                edit: Optional[ConfigEdit] = await flow.run_positional(parts)
            else:
                edit = await flow.run_interactive()
        except BackendBuildFailure as e:
            context.renderer.render_error(f"Saved, but the runner could not be rebuilt: {e}")
            context.renderer.render_dim("The previous coordinator stays active until the next rebuild.")
            return None

        if edit is None:
            context.renderer.render_dim("No changes made.")
            return None

        context.renderer.render_success(
            f"{edit.agent_name} now uses {edit.config.provider.value} / {edit.config.model_name}"
        )
        if edit.rebuilt:
            context.renderer.render_dim("Runner rebuilt; a new session starts with your next message.")
        return None
