"""Tests for the execution backend manager."""

import asyncio

import pytest
import pytest_asyncio

from agentdeck.controller.engine import TurnEngine
from agentdeck.controller.manager import (
    RESET_MESSAGE,
    SUMMARY_PREAMBLE,
    SUMMARY_REQUEST,
    ExecutionBackendManager,
    SwitchResult,
)
from agentdeck.errors import BackendBuildFailure, CompactionFailure, TurnInProgress
from agentdeck.models.agents import Provider, RunnerKind
from agentdeck.models.turn import Role

from conftest import HANG, CountingIndicator, MemoryActionLog, RecordingSink, ScriptedKeys


@pytest.fixture
def action_log():
    return MemoryActionLog()


@pytest_asyncio.fixture
async def manager(registry, factory, action_log):
    manager = ExecutionBackendManager(registry, factory, "agentdeck", action_log)
    await manager.start(RunnerKind.IN_MEMORY)
    return manager


@pytest.fixture
def engine():
    return TurnEngine(RecordingSink(), ScriptedKeys(), CountingIndicator(), poll_interval=0.01)


def confirm_with(answer, calls=None):
    async def confirm(old, new):
        if calls is not None:
            calls.append((old, new))
        return answer
    return confirm


class TestStart:
    """Tests for startup."""

    @pytest.mark.asyncio
    async def test_start_builds_backend_and_session(self, manager, factory):
        assert manager.kind == RunnerKind.IN_MEMORY
        assert manager.backend is factory.built[0]
        assert manager.session.session_id.startswith("in_memory-")

    @pytest.mark.asyncio
    async def test_start_failure_propagates(self, registry, factory):
        factory.fail = True
        manager = ExecutionBackendManager(registry, factory, "agentdeck")
        with pytest.raises(BackendBuildFailure):
            await manager.start(RunnerKind.SQLITE)

    @pytest.mark.asyncio
    async def test_session_failure_closes_new_backend(self, registry, factory):
        factory.fail_sessions = True
        manager = ExecutionBackendManager(registry, factory, "agentdeck")
        with pytest.raises(BackendBuildFailure):
            await manager.start(RunnerKind.IN_MEMORY)
        assert factory.built[0].closed


class TestSwitch:
    """Tests for runner switching."""

    @pytest.mark.asyncio
    async def test_same_kind_does_not_ask(self, manager, factory):
        calls = []
        result = await manager.request_switch(RunnerKind.IN_MEMORY, confirm_with(True, calls))
        assert result == SwitchResult.UNCHANGED
        assert calls == []
        assert len(factory.built) == 1

    @pytest.mark.asyncio
    async def test_declined_switch_keeps_everything(self, manager, factory):
        session_id = manager.session.session_id
        calls = []

        result = await manager.request_switch(RunnerKind.SQLITE, confirm_with(False, calls))

        assert result == SwitchResult.DECLINED
        assert calls == [(RunnerKind.IN_MEMORY, RunnerKind.SQLITE)]
        assert manager.kind == RunnerKind.IN_MEMORY
        assert manager.session.session_id == session_id
        assert len(factory.built) == 1

    @pytest.mark.asyncio
    async def test_confirmed_switch_swaps_all_three(self, manager, factory, action_log):
        old_backend = manager.backend
        old_session = manager.session.session_id

        result = await manager.request_switch(RunnerKind.SQLITE, confirm_with(True))

        assert result == SwitchResult.SWITCHED
        assert manager.kind == RunnerKind.SQLITE
        assert manager.backend is factory.built[-1]
        assert manager.backend.kind == RunnerKind.SQLITE
        assert manager.session.session_id != old_session
        assert manager.session.session_id.startswith("sqlite-")
        assert old_backend.closed
        assert action_log.roles() == [Role.SYSTEM]

    @pytest.mark.asyncio
    async def test_failed_build_keeps_previous(self, manager, factory):
        old_backend = manager.backend
        old_session = manager.session.session_id
        factory.fail = True

        with pytest.raises(BackendBuildFailure):
            await manager.request_switch(RunnerKind.SQLITE, confirm_with(True))

        assert manager.kind == RunnerKind.IN_MEMORY
        assert manager.backend is old_backend
        assert manager.session.session_id == old_session
        assert not old_backend.closed

    @pytest.mark.asyncio
    async def test_failed_session_keeps_previous(self, manager, factory):
        old_backend = manager.backend
        factory.fail_sessions = True

        with pytest.raises(BackendBuildFailure):
            await manager.request_switch(RunnerKind.SQLITE, confirm_with(True))

        assert manager.backend is old_backend
        assert factory.built[-1].closed
        assert manager.kind == RunnerKind.IN_MEMORY


class TestReset:
    """Tests for session reset."""

    @pytest.mark.asyncio
    async def test_reset_creates_new_session(self, manager, action_log):
        old = manager.session.session_id
        backend = manager.backend

        session = await manager.reset()

        assert session.session_id != old
        assert manager.session is session
        assert manager.backend is backend
        assert action_log.entries == [(Role.SYSTEM, RESET_MESSAGE)]

    @pytest.mark.asyncio
    async def test_reset_discards_pending_summary(self, manager, factory):
        factory.replies.append(["summary"])
        await manager.compact()
        await manager.reset()
        assert manager.pending_summary is None


class TestCompact:
    """Tests for compaction."""

    @pytest.mark.asyncio
    async def test_summary_seeds_next_turn(self, manager, factory, engine):
        old = manager.session.session_id
        factory.replies.append(["The ", "gist"])

        summary = await manager.compact()

        assert summary == "The gist"
        assert factory.built[0].submitted[0][2].text == SUMMARY_REQUEST
        assert factory.built[0].submitted[0][1] == old
        assert manager.session.session_id != old
        assert manager.pending_summary == "The gist"

        await manager.run_turn(engine, "next question")

        text = factory.built[0].submitted[-1][2].text
        assert text == f"{SUMMARY_PREAMBLE}The gist\n\nnext question"
        assert manager.pending_summary is None

    @pytest.mark.asyncio
    async def test_summary_used_only_once(self, manager, factory, engine):
        factory.replies.append(["X"])
        await manager.compact()

        await manager.run_turn(engine, "first")
        await manager.run_turn(engine, "second")

        assert factory.built[0].submitted[-1][2].text == "second"

    @pytest.mark.asyncio
    async def test_empty_summary_fails(self, manager, factory):
        old = manager.session.session_id
        factory.replies.append(["  ", "\n"])

        with pytest.raises(CompactionFailure, match="empty summary"):
            await manager.compact()

        assert manager.session.session_id == old
        assert manager.pending_summary is None

    @pytest.mark.asyncio
    async def test_stream_error_fails(self, manager, factory):
        old = manager.session.session_id
        factory.replies.append(["half", RuntimeError("provider down")])

        with pytest.raises(CompactionFailure, match="provider down"):
            await manager.compact()

        assert manager.session.session_id == old
        assert not manager.busy


class TestAgentConfigChanges:
    """Tests for rebuilds after agent config edits."""

    @pytest.mark.asyncio
    async def test_coordinator_edit_rebuilds(self, manager, registry, factory):
        old_backend = manager.backend
        registry.set("coordinator", Provider.GEMINI, "gemini-2.5-pro")

        rebuilt = await manager.on_agent_config_changed("Coordinator")

        assert rebuilt
        assert manager.backend is factory.built[-1]
        assert manager.backend.configs["Coordinator"].provider == Provider.GEMINI
        assert old_backend.closed
        assert not manager.has_session

        session = manager.session
        assert session is manager.backend.sessions[0]
        assert manager.kind == RunnerKind.IN_MEMORY

    @pytest.mark.asyncio
    async def test_compact_right_after_rebuild_fails(self, manager, registry, factory):
        registry.set("Coordinator", Provider.GEMINI, "gemini-2.5-pro")
        await manager.on_agent_config_changed("Coordinator")
        factory.replies.append(["Nothing happened yet."])

        with pytest.raises(CompactionFailure, match="Nothing to compact"):
            await manager.compact()

        assert not manager.has_session
        assert manager.pending_summary is None
        assert manager.backend.submitted == []

    @pytest.mark.asyncio
    async def test_other_agent_edit_does_not_rebuild(self, manager, registry, factory):
        session_id = manager.session.session_id
        registry.set("Coder", Provider.BEDROCK, "anthropic.claude-3-haiku-20240307-v1:0")

        rebuilt = await manager.on_agent_config_changed("Coder")

        assert not rebuilt
        assert len(factory.built) == 1
        assert manager.session.session_id == session_id

    @pytest.mark.asyncio
    async def test_failed_rebuild_keeps_previous(self, manager, factory):
        old_backend = manager.backend
        session_id = manager.session.session_id
        factory.fail = True

        with pytest.raises(BackendBuildFailure):
            await manager.on_agent_config_changed("Coordinator")

        assert manager.backend is old_backend
        assert manager.session.session_id == session_id


class TestBusy:
    """Tests for lifecycle requests during a turn."""

    @pytest.mark.asyncio
    async def test_lifecycle_rejected_while_streaming(self, manager, factory):
        factory.replies.append(["a", HANG])
        checked = []

        async def attempt_all():
            for call in (
                manager.reset(),
                manager.compact(),
                manager.request_switch(RunnerKind.SQLITE, confirm_with(True)),
                manager.on_agent_config_changed("Coordinator"),
            ):
                with pytest.raises(TurnInProgress):
                    await call
                checked.append(True)

        class Keys(ScriptedKeys):
            def poll(self):
                self.polls += 1
                return self.polls > 2

        engine = TurnEngine(RecordingSink(), Keys(), CountingIndicator(), poll_interval=0.01)

        turn = asyncio.create_task(manager.run_turn(engine, "hello"))
        await asyncio.sleep(0)
        assert manager.busy
        await attempt_all()
        outcome = await turn

        assert checked == [True] * 4
        assert outcome.is_cancelled
        assert not manager.busy

    @pytest.mark.asyncio
    async def test_busy_cleared_after_failed_turn(self, manager, factory, engine):
        factory.replies.append([RuntimeError("boom")])
        outcome = await manager.run_turn(engine, "hello")
        assert outcome.is_failed
        assert not manager.busy
