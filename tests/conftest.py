"""Shared fixtures and fakes for agentdeck tests."""

import asyncio
import sys
import itertools
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from rich.console import Console

from agentdeck.agents.registry import AgentConfigRegistry
from agentdeck.config.cli_config import CLIConfig
from agentdeck.controller.indicator import WaitingIndicator
from agentdeck.controller.keys import KeySource
from agentdeck.errors import BackendBuildFailure
from agentdeck.models.agents import AgentConfig, RunnerKind
from agentdeck.models.session import Session
from agentdeck.models.turn import Fragment, Role, TurnContent
from agentdeck.output.streaming import StreamSink
from agentdeck.runtime.stream import FragmentStream
from agentdeck.store.config_store import ConfigStore

_ids = itertools.count(1)

# A scripted reply: text chunks, optionally ending in an exception to raise,
# or HANG to block forever after the preceding chunks.
HANG = object()
Reply = Sequence[Union[str, Exception, object]]


class FakeBackend:
    """Backend double that replays scripted replies."""

    def __init__(
        self,
        kind: RunnerKind,
        configs: Dict[str, AgentConfig],
        replies: Optional[List[Reply]] = None,
    ):
        self.kind = kind
        self.configs = dict(configs)
        self.replies = replies if replies is not None else []
        self.sessions: List[Session] = []
        self.submitted: List[tuple] = []
        self.fail_sessions = False
        self.closed = False
        self.stream_closed = False

    def create_session(self, app_id: str, agent_name: str) -> Session:
        if self.fail_sessions:
            raise BackendBuildFailure("session service down")
        session = Session(
            session_id=f"{self.kind.value.lower()}-{next(_ids)}",
            app_id=app_id,
            agent_name=agent_name,
        )
        self.sessions.append(session)
        return session

    def submit_turn(self, agent_name: str, session_id: str, content: TurnContent) -> FragmentStream:
        self.submitted.append((agent_name, session_id, content))
        reply = self.replies.pop(0) if self.replies else ["ok"]
        return FragmentStream(self._play(reply))

    async def _play(self, reply: Reply):
        try:
            for item in reply:
                if item is HANG:
                    await asyncio.Event().wait()
                elif isinstance(item, Exception):
                    raise item
                else:
                    await asyncio.sleep(0)
                    yield Fragment(item)
        finally:
            self.stream_closed = True

    async def aclose(self) -> None:
        self.closed = True


class FakeFactory:
    """Backend builder that records every build."""

    def __init__(self):
        self.built: List[FakeBackend] = []
        self.replies: List[Reply] = []
        self.fail = False
        self.fail_sessions = False

    def __call__(self, kind: RunnerKind, configs: Dict[str, AgentConfig]) -> FakeBackend:
        if self.fail:
            raise BackendBuildFailure("cannot build")
        backend = FakeBackend(kind, configs, self.replies)
        backend.fail_sessions = self.fail_sessions
        self.built.append(backend)
        return backend


class RecordingSink(StreamSink):
    """Sink that keeps everything written."""

    def __init__(self):
        self.writes: List[str] = []
        self.finished = 0

    def write(self, text: str) -> None:
        self.writes.append(text)

    def finish(self) -> None:
        self.finished += 1


class CountingIndicator(WaitingIndicator):
    """Indicator that counts lifecycle calls."""

    def __init__(self):
        self.starts = 0
        self.pulses = 0
        self.clears = 0

    def start(self) -> None:
        self.starts += 1

    def pulse(self) -> None:
        self.pulses += 1

    def clear(self) -> None:
        self.clears += 1


class ScriptedKeys(KeySource):
    """Reports the cancel key when the predicate says so."""

    def __init__(self, predicate: Callable[[], bool] = lambda: False):
        self.predicate = predicate
        self.polls = 0
        self.captures = 0

    def capture(self):
        self.captures += 1
        return super().capture()

    def poll(self) -> bool:
        self.polls += 1
        return self.predicate()


class MemoryActionLog:
    """Action log double."""

    def __init__(self):
        self.entries: List[tuple] = []

    def log(self, role: Role, content: str) -> None:
        self.entries.append((role, content))

    def roles(self) -> List[Role]:
        return [role for role, _ in self.entries]


@pytest.fixture
def store(tmp_path):
    """Config store in a temporary directory."""
    return ConfigStore(tmp_path / "central_memory.db")


@pytest.fixture
def registry(store):
    """Registry with default OLLAMA assignments."""
    return AgentConfigRegistry(store)


@pytest.fixture
def factory():
    """Recording backend factory."""
    return FakeFactory()


@pytest.fixture
def config(tmp_path):
    """CLI config rooted in a temporary directory."""
    return CLIConfig(data_dir=str(tmp_path / "data"))


@pytest.fixture
def console():
    """Console that records output."""
    return Console(record=True, width=120, force_terminal=False)
