"""Tests for the turn engine."""

import asyncio
import itertools
import os
import sys

import pytest

from agentdeck.controller.engine import INTERRUPTED_MESSAGE, TurnEngine
from agentdeck.controller.keys import NullKeySource, TerminalKeySource
from agentdeck.models.agents import RunnerKind
from agentdeck.models.turn import Role, TurnContent

from conftest import HANG, CountingIndicator, FakeBackend, MemoryActionLog, RecordingSink, ScriptedKeys


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def indicator():
    return CountingIndicator()


@pytest.fixture
def action_log():
    return MemoryActionLog()


@pytest.fixture
def backend(registry):
    return FakeBackend(RunnerKind.IN_MEMORY, registry.snapshot())


@pytest.fixture
def session(backend):
    return backend.create_session("agentdeck", "Coordinator")


def make_engine(sink, indicator, action_log, keys=None):
    return TurnEngine(
        sink=sink,
        keys=keys or ScriptedKeys(),
        indicator=indicator,
        action_log=action_log,
        poll_interval=0.01,
    )


class TestCompletedTurns:
    """Tests for turns that run to the end."""

    @pytest.mark.asyncio
    async def test_fragments_are_written_in_order(self, backend, session, sink, indicator, action_log):
        backend.replies.append(["Hel", "lo"])
        engine = make_engine(sink, indicator, action_log)

        outcome = await engine.run_turn(backend, session, TurnContent("hi"))

        assert outcome.is_completed
        assert outcome.text == "Hello"
        assert sink.writes == ["Hel", "lo"]
        assert sink.finished == 1

    @pytest.mark.asyncio
    async def test_logs_user_then_agent(self, backend, session, sink, indicator, action_log):
        backend.replies.append(["Hello"])
        engine = make_engine(sink, indicator, action_log)

        await engine.run_turn(backend, session, TurnContent("hi"))

        assert action_log.entries == [(Role.USER, "hi"), (Role.AGENT, "Hello")]

    @pytest.mark.asyncio
    async def test_empty_reply_completes(self, backend, session, sink, indicator, action_log):
        backend.replies.append([])
        engine = make_engine(sink, indicator, action_log)

        outcome = await engine.run_turn(backend, session, TurnContent("hi"))

        assert outcome.is_completed
        assert outcome.text == ""
        assert sink.writes == []

    @pytest.mark.asyncio
    async def test_indicator_cleared_exactly_once(self, backend, session, sink, indicator, action_log):
        backend.replies.append(["a", "b", "c"])
        engine = make_engine(sink, indicator, action_log)

        await engine.run_turn(backend, session, TurnContent("hi"))

        assert indicator.starts == 1
        assert indicator.clears == 1

    @pytest.mark.asyncio
    async def test_stream_is_closed(self, backend, session, sink, indicator, action_log):
        backend.replies.append(["done"])
        engine = make_engine(sink, indicator, action_log)

        await engine.run_turn(backend, session, TurnContent("hi"))

        assert backend.stream_closed

    @pytest.mark.asyncio
    async def test_submits_to_requested_agent(self, backend, session, sink, indicator, action_log):
        engine = make_engine(sink, indicator, action_log)

        await engine.run_turn(backend, session, TurnContent("hi"), agent_name="Coder")

        agent, session_id, content = backend.submitted[0]
        assert agent == "Coder"
        assert session_id == session.session_id
        assert content.text == "hi"


class TestCancellation:
    """Tests for the cancel key."""

    @pytest.mark.asyncio
    async def test_cancel_before_first_fragment(self, backend, session, sink, indicator, action_log):
        backend.replies.append([HANG])
        keys = ScriptedKeys(lambda: keys.polls > 3)
        engine = make_engine(sink, indicator, action_log, keys)

        outcome = await asyncio.wait_for(
            engine.run_turn(backend, session, TurnContent("hi")),
            timeout=5,
        )

        assert outcome.is_cancelled
        assert outcome.text == ""
        assert indicator.pulses >= 1
        assert indicator.clears == 1
        assert backend.stream_closed
        assert action_log.roles() == [Role.USER, Role.SYSTEM]
        assert action_log.entries[-1][1] == INTERRUPTED_MESSAGE

    @pytest.mark.asyncio
    async def test_cancel_keeps_partial_text(self, backend, session, sink, indicator, action_log):
        backend.replies.append(["a", "b", HANG])
        keys = ScriptedKeys(lambda: len(sink.writes) >= 2)
        engine = make_engine(sink, indicator, action_log, keys)

        outcome = await asyncio.wait_for(
            engine.run_turn(backend, session, TurnContent("hi")),
            timeout=5,
        )

        assert outcome.is_cancelled
        assert outcome.text.startswith("ab")
        assert backend.stream_closed
        assert sink.finished == 1

    @pytest.mark.asyncio
    async def test_cancel_while_fragments_keep_flowing(self, backend, session, sink, indicator, action_log):
        backend.replies.append(itertools.chain("abc", itertools.repeat("d")))
        keys = ScriptedKeys(lambda: len(sink.writes) >= 2)
        engine = make_engine(sink, indicator, action_log, keys)

        outcome = await asyncio.wait_for(
            engine.run_turn(backend, session, TurnContent("hi")),
            timeout=5,
        )

        assert outcome.is_cancelled
        assert outcome.text in ("ab", "abc")
        assert len(sink.writes) <= 3
        assert backend.stream_closed
        assert action_log.roles() == [Role.USER, Role.SYSTEM]

    @pytest.mark.asyncio
    async def test_cancel_after_stream_ended_is_ignored(self, backend, session, sink, indicator, action_log):
        backend.replies.append(["a", "b"])
        keys = ScriptedKeys(lambda: backend.stream_closed)
        engine = make_engine(sink, indicator, action_log, keys)

        outcome = await asyncio.wait_for(
            engine.run_turn(backend, session, TurnContent("hi")),
            timeout=5,
        )

        assert outcome.is_completed
        assert outcome.text == "ab"
        assert sink.writes == ["a", "b"]
        assert action_log.roles() == [Role.USER, Role.AGENT]

    @pytest.mark.asyncio
    async def test_keys_captured_for_the_turn(self, backend, session, sink, indicator, action_log):
        keys = ScriptedKeys()
        engine = make_engine(sink, indicator, action_log, keys)

        await engine.run_turn(backend, session, TurnContent("hi"))

        assert keys.captures == 1
        assert keys.polls >= 1


class TestFailures:
    """Tests for failing turns."""

    @pytest.mark.asyncio
    async def test_stream_error_becomes_failed(self, backend, session, sink, indicator, action_log):
        backend.replies.append(["partial ", RuntimeError("model exploded")])
        engine = make_engine(sink, indicator, action_log)

        outcome = await engine.run_turn(backend, session, TurnContent("hi"))

        assert outcome.is_failed
        assert "model exploded" in outcome.reason
        assert outcome.text == ""
        assert outcome.partial == "partial "
        assert action_log.roles() == [Role.USER, Role.ERROR]
        assert backend.stream_closed

    @pytest.mark.asyncio
    async def test_submit_error_becomes_failed(self, session, sink, indicator, action_log, mocker):
        backend = mocker.Mock()
        backend.submit_turn.side_effect = RuntimeError("no such agent")
        engine = make_engine(sink, indicator, action_log)

        outcome = await engine.run_turn(backend, session, TurnContent("hi"))

        assert outcome.is_failed
        assert outcome.reason == "no such agent"
        assert indicator.starts == 0
        assert action_log.roles() == [Role.USER, Role.ERROR]


@pytest.mark.skipif(sys.platform == "win32", reason="select() on pipes is POSIX only")
class TestTerminalKeySource:
    """Tests for cancel-key reading from a pipe."""

    @pytest.fixture
    def pipe(self):
        read_fd, write_fd = os.pipe()
        reader = os.fdopen(read_fd, "rb", buffering=0)
        yield reader, write_fd
        reader.close()
        os.close(write_fd)

    def armed(self, reader):
        keys = TerminalKeySource(reader)
        keys._active = True
        return keys

    def test_not_a_terminal_never_cancels(self, pipe):
        reader, write_fd = pipe
        os.write(write_fd, b"\x1b")
        keys = TerminalKeySource(reader)
        with keys.capture():
            assert keys.poll() is False

    def test_bare_escape_cancels(self, pipe):
        reader, write_fd = pipe
        os.write(write_fd, b"\x1b")
        assert self.armed(reader).poll() is True

    def test_escape_sequence_is_ignored(self, pipe):
        reader, write_fd = pipe
        os.write(write_fd, b"\x1b[A")
        keys = self.armed(reader)
        assert keys.poll() is False
        assert keys.poll() is False

    def test_other_keys_are_ignored(self, pipe):
        reader, write_fd = pipe
        os.write(write_fd, b"abc")
        assert self.armed(reader).poll() is False

    def test_null_source(self):
        keys = NullKeySource()
        with keys.capture():
            assert keys.poll() is False
