"""Interactive and one-line editing of agent provider/model assignments."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from rich.console import Console
from rich.table import Table

from .manager import ExecutionBackendManager
from ..agents.registry import AgentConfigRegistry
from ..errors import InvalidSelection, ProviderError
from ..models.agents import AgentConfig, Provider
from ..models.catalog import default_model, is_known_model

logger = logging.getLogger(__name__)

Ask = Callable[[str], Awaitable[str]]
ModelLister = Callable[[Provider], Awaitable[List[str]]]

MANUAL_ENTRY = "M"
PROVIDER_HINT = "Use OLLAMA, GEMINI, or BEDROCK."


@dataclass
class ConfigEdit:
    """A saved agent config change."""

    agent_name: str
    config: AgentConfig
    rebuilt: bool  # The runner was rebuilt because the coordinator changed


def _pick(options: Sequence[str], answer: str, what: str) -> str:
    """Resolve a 1-based index or a case-insensitive name against options."""
    answer = answer.strip()
    if answer.isdigit():
        index = int(answer) - 1
        if 0 <= index < len(options):
            return options[index]
        raise InvalidSelection(f"Invalid {what} number: {answer}")
    for option in options:
        if option.lower() == answer.lower():
            return option
    raise InvalidSelection(f"Unknown {what}: {answer}")


class ConfigEditorFlow:
    """
    Walks the user through agent -> provider -> model, then saves.

    An empty answer at the agent step or at manual model entry cancels
    without changing anything.
    """

    def __init__(
        self,
        registry: AgentConfigRegistry,
        manager: ExecutionBackendManager,
        console: Console,
        ask: Ask,
        list_models: ModelLister,
    ):
        """
        Initialize editor flow.

        Args:
            registry: Agent config registry
            manager: Execution manager, told about coordinator changes
            console: Rich console for menus
            ask: Prompts the user and returns the answer
            list_models: Lists selectable models for a provider
        """
        self.registry = registry
        self.manager = manager
        self.console = console
        self.ask = ask
        self.list_models = list_models

    async def run_interactive(self) -> Optional[ConfigEdit]:
        """
        Run the menu-driven flow.

        Returns:
            The saved edit, or None if cancelled

        Raises:
            InvalidSelection: An answer matched no option
            StoreFailure: Saving failed; nothing changed
            BackendBuildFailure: Saved, but the coordinator rebuild failed
        """
        agents = self.registry.names()
        table = Table(title="Agent Configurations", show_header=True)
        table.add_column("#", style="dim")
        table.add_column("Agent", style="cyan")
        table.add_column("Provider")
        table.add_column("Model")
        for index, name in enumerate(agents, 1):
            cfg = self.registry.get(name)
            table.add_row(str(index), name, cfg.provider.value, cfg.model_name)
        self.console.print(table)

        answer = (await self.ask("Select agent (number or name, Enter to cancel): ")).strip()
        if not answer:
            return None
        agent = _pick(agents, answer, "agent")
        current = self.registry.get(agent)

        providers = [p.value for p in Provider]
        self.console.print(f"\n[cyan]Providers for {agent}:[/cyan]")
        for index, name in enumerate(providers, 1):
            marker = " [green](current)[/green]" if name == current.provider.value else ""
            self.console.print(f"  {index}. {name}{marker}")
        answer = (await self.ask(f"Select provider (Enter to keep {current.provider.value}): ")).strip()
        provider = Provider(_pick(providers, answer, "provider")) if answer else current.provider

        suggested = current.model_name if provider == current.provider else default_model(provider)
        models = await self._models_for(provider)
        self.console.print(f"\n[cyan]Models for {provider.value}:[/cyan]")
        for index, name in enumerate(models, 1):
            marker = " [green](current)[/green]" if name == current.model_name else ""
            self.console.print(f"  {index}. {name}{marker}")
        self.console.print(f"  [{MANUAL_ENTRY}] Manual Entry")

        answer = (await self.ask(f"Select model (Enter for {suggested}): ")).strip()
        if not answer:
            model = suggested
        elif answer.upper() == MANUAL_ENTRY:
            model = (await self.ask("Enter model name: ")).strip()
            if not model:
                return None
        elif answer.isdigit():
            model = _pick(models, answer, "model")
        else:
            model = answer

        return await self.apply(agent, provider, model)

    async def run_positional(self, args: List[str]) -> ConfigEdit:
        """
        Apply ``<agent> <provider> [model]`` in one step.

        Without a model, an unchanged provider keeps the current model and
        a changed provider gets its default model.

        Raises:
            InvalidSelection: Bad agent, provider or argument count
            StoreFailure: Saving failed; nothing changed
            BackendBuildFailure: Saved, but the coordinator rebuild failed
        """
        if len(args) < 2:
            raise InvalidSelection("Usage: /config <agent> <provider> [model]")

        agent = self.registry.resolve_name(args[0])
        try:
            provider = Provider.parse(args[1])
        except ValueError:
            raise InvalidSelection(f"Invalid provider: {args[1]}. {PROVIDER_HINT}") from None

        current = self.registry.get(agent)
        if len(args) > 2:
            model = " ".join(args[2:])
        elif provider == current.provider:
            model = current.model_name
        else:
            model = default_model(provider)

        return await self.apply(agent, provider, model)

    async def apply(self, agent: str, provider: Provider, model: str) -> ConfigEdit:
        """Save an assignment and rebuild the runner if it is the coordinator's."""
        if not is_known_model(provider, model):
            self.console.print(
                f"[yellow]{model} is not in the {provider.value} catalog; saving anyway.[/yellow]"
            )

        config = self.registry.set(agent, provider, model)
        rebuilt = await self.manager.on_agent_config_changed(agent)
        return ConfigEdit(agent_name=agent, config=config, rebuilt=rebuilt)

    async def _models_for(self, provider: Provider) -> List[str]:
        try:
            return await self.list_models(provider)
        except ProviderError as e:
            logger.debug(f"Model discovery failed: {e}")
            self.console.print(f"[yellow]Could not list {provider.value} models: {e}[/yellow]")
            return []
