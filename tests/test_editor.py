"""Tests for the agent config editor flow."""

import pytest
import pytest_asyncio

from agentdeck.controller.editor import ConfigEditorFlow
from agentdeck.controller.manager import ExecutionBackendManager
from agentdeck.errors import InvalidSelection, ProviderError
from agentdeck.models.agents import Provider, RunnerKind
from agentdeck.models.catalog import default_model


class ScriptedAsk:
    """Answers prompts from a list."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.prompts = []

    async def __call__(self, prompt):
        self.prompts.append(prompt)
        return self.answers.pop(0)


async def catalog_models(provider):
    if provider == Provider.OLLAMA:
        return ["llama3", "qwen2.5-coder"]
    return ["gemini-2.5-pro", "gemini-2.5-flash"]


@pytest_asyncio.fixture
async def manager(registry, factory):
    manager = ExecutionBackendManager(registry, factory, "agentdeck")
    await manager.start(RunnerKind.IN_MEMORY)
    return manager


def make_flow(registry, manager, console, ask, list_models=catalog_models):
    return ConfigEditorFlow(registry, manager, console, ask, list_models)


class TestPositional:
    """Tests for /config <agent> <provider> [model]."""

    @pytest.mark.asyncio
    async def test_explicit_model(self, registry, manager, console):
        flow = make_flow(registry, manager, console, ScriptedAsk())

        edit = await flow.run_positional(["coder", "gemini", "gemini-2.5-pro"])

        assert edit.agent_name == "Coder"
        assert edit.config.provider == Provider.GEMINI
        assert edit.config.model_name == "gemini-2.5-pro"
        assert not edit.rebuilt
        assert registry.get("Coder").model_name == "gemini-2.5-pro"

    @pytest.mark.asyncio
    async def test_new_provider_gets_default_model(self, registry, manager, console):
        flow = make_flow(registry, manager, console, ScriptedAsk())
        edit = await flow.run_positional(["Tester", "BEDROCK"])
        assert edit.config.model_name == default_model(Provider.BEDROCK)

    @pytest.mark.asyncio
    async def test_same_provider_keeps_model(self, registry, manager, console):
        registry.set("Tester", Provider.OLLAMA, "llama3")
        flow = make_flow(registry, manager, console, ScriptedAsk())
        edit = await flow.run_positional(["Tester", "ollama"])
        assert edit.config.model_name == "llama3"

    @pytest.mark.asyncio
    async def test_coordinator_rebuilds(self, registry, manager, factory, console):
        flow = make_flow(registry, manager, console, ScriptedAsk())
        edit = await flow.run_positional(["Coordinator", "OLLAMA", "qwen2.5-coder"])
        assert edit.rebuilt
        assert len(factory.built) == 2

    @pytest.mark.asyncio
    async def test_invalid_provider(self, registry, manager, console):
        flow = make_flow(registry, manager, console, ScriptedAsk())
        with pytest.raises(InvalidSelection, match="Use OLLAMA, GEMINI, or BEDROCK"):
            await flow.run_positional(["Coder", "openai"])

    @pytest.mark.asyncio
    async def test_too_few_arguments(self, registry, manager, console):
        flow = make_flow(registry, manager, console, ScriptedAsk())
        with pytest.raises(InvalidSelection, match="Usage"):
            await flow.run_positional(["Coder"])

    @pytest.mark.asyncio
    async def test_uncataloged_model_warns(self, registry, manager, console):
        flow = make_flow(registry, manager, console, ScriptedAsk())
        await flow.run_positional(["Coder", "GEMINI", "gemini-99"])
        assert "not in the GEMINI catalog" in console.export_text()
        assert registry.get("Coder").model_name == "gemini-99"


class TestInteractive:
    """Tests for the menu-driven flow."""

    @pytest.mark.asyncio
    async def test_empty_agent_cancels(self, registry, manager, console):
        flow = make_flow(registry, manager, console, ScriptedAsk(""))
        assert await flow.run_interactive() is None

    @pytest.mark.asyncio
    async def test_pick_by_name_and_number(self, registry, manager, console):
        ask = ScriptedAsk("tester", "2", "1")
        flow = make_flow(registry, manager, console, ask)

        edit = await flow.run_interactive()

        assert edit.agent_name == "Tester"
        assert edit.config.provider == Provider.GEMINI
        assert edit.config.model_name == "gemini-2.5-pro"
        assert len(ask.prompts) == 3

    @pytest.mark.asyncio
    async def test_defaults_keep_current(self, registry, manager, console):
        registry.set("Coder", Provider.OLLAMA, "llama3")
        flow = make_flow(registry, manager, console, ScriptedAsk("Coder", "", ""))

        edit = await flow.run_interactive()

        assert edit.config == registry.get("Coder")
        assert edit.config.model_name == "llama3"

    @pytest.mark.asyncio
    async def test_manual_entry(self, registry, manager, console):
        flow = make_flow(registry, manager, console, ScriptedAsk("Coder", "", "m", "custom:7b"))
        edit = await flow.run_interactive()
        assert edit.config.model_name == "custom:7b"

    @pytest.mark.asyncio
    async def test_empty_manual_entry_cancels(self, registry, manager, console):
        before = registry.get("Coder")
        flow = make_flow(registry, manager, console, ScriptedAsk("Coder", "", "M", ""))
        assert await flow.run_interactive() is None
        assert registry.get("Coder") == before

    @pytest.mark.asyncio
    async def test_bad_agent_number(self, registry, manager, console):
        flow = make_flow(registry, manager, console, ScriptedAsk("99"))
        with pytest.raises(InvalidSelection):
            await flow.run_interactive()

    @pytest.mark.asyncio
    async def test_discovery_failure_allows_manual_entry(self, registry, manager, console):
        async def offline(provider):
            raise ProviderError("connection refused", provider="OLLAMA")

        flow = make_flow(registry, manager, console, ScriptedAsk("Coder", "", "M", "llama3"), offline)

        edit = await flow.run_interactive()

        assert edit.config.model_name == "llama3"
        assert "Could not list OLLAMA models" in console.export_text()
