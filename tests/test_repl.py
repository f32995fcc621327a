"""Tests for the REPL."""

from unittest.mock import AsyncMock, MagicMock, PropertyMock

import pytest
import pytest_asyncio

from agentdeck.controller.keys import NullKeySource
from agentdeck.controller.manager import ExecutionBackendManager
from agentdeck.input.parser import InputParser
from agentdeck.models.agents import RunnerKind
from agentdeck.output.renderer import OutputRenderer
from agentdeck.repl import REPL, create_repl


@pytest_asyncio.fixture
async def manager(registry, factory):
    manager = ExecutionBackendManager(registry, factory, "agentdeck")
    await manager.start(RunnerKind.IN_MEMORY)
    return manager


@pytest.fixture
def repl(manager, registry, store, config, console, tmp_path):
    repl = create_repl(
        manager=manager,
        registry=registry,
        store=store,
        config=config,
        renderer=OutputRenderer(config, console),
        project_path=str(tmp_path),
        keys=NullKeySource(),
    )
    repl.parser = InputParser(base_dir=tmp_path)
    return repl


class TestProcessInput:
    """Tests for one line of input."""

    @pytest.mark.asyncio
    async def test_empty_and_exit(self, repl):
        assert await repl._process_input("   ") is True
        assert await repl._process_input("exit") is False

    @pytest.mark.asyncio
    async def test_message_streams_reply(self, repl, factory, console):
        factory.replies.append(["Hi ", "there"])

        assert await repl._process_input("hello")

        assert factory.built[0].submitted[0][2].text == "hello"
        assert "Hi there" in console.export_text()

    @pytest.mark.asyncio
    async def test_image_is_attached(self, repl, factory, tmp_path):
        (tmp_path / "shot.png").write_bytes(b"\x89PNG")

        await repl._process_input("describe shot.png please")

        content = factory.built[0].submitted[0][2]
        assert [a.name for a in content.attachments] == ["shot.png"]

    @pytest.mark.asyncio
    async def test_failed_turn_is_reported(self, repl, factory, console):
        factory.replies.append([RuntimeError("model offline")])
        await repl._process_input("hello")
        assert "Error: model offline" in console.export_text()

    @pytest.mark.asyncio
    async def test_unknown_command(self, repl, console):
        await repl._process_input("/nope")
        assert "Unknown command: /nope" in console.export_text()

    @pytest.mark.asyncio
    async def test_command_errors_are_rendered(self, repl, console):
        await repl._process_input("/config Coder openai")
        assert "Invalid provider: openai" in console.export_text()

    @pytest.mark.asyncio
    async def test_quit_command_raises(self, repl):
        with pytest.raises(SystemExit):
            await repl._process_input("/quit")

    def test_prompt_shows_runner(self, repl):
        assert repl._get_prompt() == "in_memory> "


class TestRun:
    """Tests for the main loop."""

    @pytest.mark.asyncio
    async def test_loop_until_quit(self, repl, factory, console, mocker):
        session = MagicMock()
        session.prompt_async = AsyncMock(side_effect=["hello", KeyboardInterrupt(), "/quit"])
        mocker.patch.object(REPL, "prompt_session", new_callable=PropertyMock, return_value=session)

        await repl.run()

        text = console.export_text()
        assert "agentdeck" in text
        assert "Goodbye!" in text
        assert len(factory.built[0].submitted) == 1

    @pytest.mark.asyncio
    async def test_loop_ends_on_eof(self, repl, console, mocker):
        session = MagicMock()
        session.prompt_async = AsyncMock(side_effect=EOFError())
        mocker.patch.object(REPL, "prompt_session", new_callable=PropertyMock, return_value=session)

        await repl.run()

        assert "Goodbye!" in console.export_text()

    @pytest.mark.asyncio
    async def test_ask_returns_empty_on_interrupt(self, repl, mocker):
        question = MagicMock()
        question.prompt_async = AsyncMock(side_effect=KeyboardInterrupt())
        repl._question_session = question
        assert await repl.ask("? ") == ""
