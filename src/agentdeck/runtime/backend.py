"""Execution backend: sessions, artifacts, memory and providers for one runner."""

import logging
import os
import sqlite3
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional

from botocore.exceptions import BotoCoreError

from .artifacts import InMemoryArtifactService
from .memory import ProjectMemoryRecall
from .prompts import build_system_prompt
from .providers.base import BaseProvider, ChatMessage
from .providers.bedrock import BedrockProvider
from .providers.gemini import GeminiProvider
from .providers.ollama import OllamaProvider
from .sessions import InMemorySessionService, SessionService, SqliteSessionService
from .stream import FragmentStream
from ..config.cli_config import CLIConfig, get_sessions_path
from ..errors import BackendBuildFailure, InvalidSelection, StreamFailure
from ..models.agents import AgentConfig, Provider, RunnerKind
from ..models.session import Session, SessionEvent
from ..models.turn import Fragment, TurnContent
from ..store.config_store import ConfigStore

logger = logging.getLogger(__name__)

GOOGLE_API_KEY_ENV = "GOOGLE_API_KEY"


class AgentBackend:
    """
    One built execution backend.

    Holds a frozen copy of the agent assignments taken at build time;
    later registry edits do not reach it until it is rebuilt.
    """

    def __init__(
        self,
        kind: RunnerKind,
        sessions: SessionService,
        artifacts: InMemoryArtifactService,
        memory: ProjectMemoryRecall,
        configs: Dict[str, AgentConfig],
        providers: Dict[Provider, BaseProvider],
        prior_summary: Optional[str] = None,
    ):
        """
        Initialize backend.

        Args:
            kind: Runner kind this backend was built for
            sessions: Session service
            artifacts: Artifact service
            memory: Project memory recall
            configs: Agent assignments snapshot
            providers: One client per provider used by the snapshot
            prior_summary: Previous-session summary for system prompts
        """
        self.kind = kind
        self.sessions = sessions
        self.artifacts = artifacts
        self.memory = memory
        self.configs = dict(configs)
        self.providers = providers
        self.prior_summary = prior_summary

    def create_session(self, app_id: str, agent_name: str) -> Session:
        """
        Create a new session.

        Raises:
            BackendBuildFailure: If the session service fails
        """
        try:
            session = self.sessions.create_session(app_id, agent_name)
        except (sqlite3.Error, OSError) as e:
            raise BackendBuildFailure(f"Could not create session: {e}") from e
        logger.debug(f"Created session {session.session_id} on {self.kind.value}")
        return session

    def submit_turn(
        self,
        agent_name: str,
        session_id: str,
        content: TurnContent,
    ) -> FragmentStream:
        """
        Submit a user turn.

        Nothing is sent until the returned stream is iterated.

        Args:
            agent_name: Agent that should answer
            session_id: Target session
            content: User content

        Returns:
            Stream of response fragments

        Raises:
            InvalidSelection: If the agent is not part of this backend
        """
        if agent_name not in self.configs:
            raise InvalidSelection(f"Unknown agent: {agent_name}")
        return FragmentStream(self._run_turn(agent_name, session_id, content))

    async def _run_turn(
        self,
        agent_name: str,
        session_id: str,
        content: TurnContent,
    ) -> AsyncIterator[Fragment]:
        session = self.sessions.get_session(session_id)
        if session is None:
            raise StreamFailure(f"Unknown session: {session_id}")

        config = self.configs[agent_name]
        provider = self.providers[config.provider]

        messages = _history_messages(session.events)
        messages.append(ChatMessage("user", content.text, list(content.attachments)))
        system_prompt = build_system_prompt(
            agent_name,
            self.configs,
            project_memory=self.memory.recall(),
            prior_summary=self.prior_summary,
        )
        artifact_names = [self.artifacts.save(session_id, a) for a in content.attachments]

        parts: List[str] = []
        finished = False
        chunks = provider.astream(config.model_name, messages, system_prompt)
        try:
            async for chunk in chunks:
                parts.append(chunk)
                yield Fragment(chunk)
            finished = True
        finally:
            # Release the provider stream now, not when it is garbage collected
            try:
                await chunks.aclose()
            finally:
                self._record_turn(
                    session_id,
                    agent_name,
                    content,
                    artifact_names,
                    "".join(parts),
                    interrupted=not finished,
                )

    def _record_turn(
        self,
        session_id: str,
        agent_name: str,
        content: TurnContent,
        artifact_names: List[str],
        reply: str,
        interrupted: bool,
    ) -> None:
        """Append the user turn and the (possibly partial) reply to the session."""
        try:
            self.sessions.append_event(
                session_id,
                SessionEvent(role="user", text=content.text, attachments=artifact_names),
            )
            if reply:
                self.sessions.append_event(
                    session_id,
                    SessionEvent(
                        role="assistant",
                        text=reply,
                        author=agent_name,
                        interrupted=interrupted,
                    ),
                )
        except (KeyError, sqlite3.Error, OSError) as e:
            logger.warning(f"Could not record turn in session {session_id}: {e}")

    async def aclose(self) -> None:
        """Close provider clients and the session service."""
        for provider in self.providers.values():
            await provider.aclose()
        self.sessions.close()


def _history_messages(events: List[SessionEvent]) -> List[ChatMessage]:
    """Convert session events to chat messages, merging same-role runs."""
    messages: List[ChatMessage] = []
    for event in events:
        if messages and messages[-1].role == event.role:
            messages[-1].text = f"{messages[-1].text}\n\n{event.text}"
        else:
            messages.append(ChatMessage(event.role, event.text))
    return messages


class BackendFactory:
    """Builds AgentBackend instances for a runner kind and a config snapshot."""

    def __init__(
        self,
        config: CLIConfig,
        store: ConfigStore,
        project_path: str,
        prior_summary: Optional[str] = None,
    ):
        """
        Initialize factory.

        Args:
            config: CLI configuration
            store: Config store, for project memory recall
            project_path: Absolute path of the current project
            prior_summary: Previous-session summary, if any
        """
        self.config = config
        self.store = store
        self.project_path = project_path
        self.prior_summary = prior_summary

    def __call__(self, kind: RunnerKind, configs: Dict[str, AgentConfig]) -> AgentBackend:
        return self.build(kind, configs)

    def build(self, kind: RunnerKind, configs: Dict[str, AgentConfig]) -> AgentBackend:
        """
        Build a backend.

        Args:
            kind: Runner kind
            configs: Agent assignments snapshot

        Returns:
            New backend

        Raises:
            BackendBuildFailure: Missing credentials or unusable session storage
        """
        used = {cfg.provider for cfg in configs.values()}
        self._check_credentials(used)

        sessions = self._build_sessions(kind)
        providers = self._build_providers(used)

        logger.info(f"Built {kind.value} backend with providers {sorted(p.value for p in used)}")
        return AgentBackend(
            kind=kind,
            sessions=sessions,
            artifacts=InMemoryArtifactService(),
            memory=ProjectMemoryRecall(self.store, self.project_path),
            configs=configs,
            providers=providers,
            prior_summary=self.prior_summary,
        )

    def _check_credentials(self, providers: set) -> None:
        if Provider.GEMINI in providers and not os.environ.get(GOOGLE_API_KEY_ENV):
            raise BackendBuildFailure(
                f"{GOOGLE_API_KEY_ENV} is not set; it is required for agents using GEMINI"
            )

    def _build_sessions(self, kind: RunnerKind) -> SessionService:
        if kind == RunnerKind.IN_MEMORY:
            return InMemorySessionService()
        path = Path(get_sessions_path(self.config))
        try:
            return SqliteSessionService(path)
        except (sqlite3.Error, OSError) as e:
            raise BackendBuildFailure(f"Could not open session database {path}: {e}") from e

    def _build_providers(self, providers: set) -> Dict[Provider, BaseProvider]:
        built: Dict[Provider, BaseProvider] = {}

        # Bedrock first: it is the only constructor that can still fail
        if Provider.BEDROCK in providers:
            try:
                built[Provider.BEDROCK] = BedrockProvider(region_name=self.config.aws_region)
            except BotoCoreError as e:
                raise BackendBuildFailure(f"Could not create Bedrock client: {e}") from e

        if Provider.GEMINI in providers:
            built[Provider.GEMINI] = GeminiProvider(
                api_key=os.environ[GOOGLE_API_KEY_ENV],
                timeout=self.config.request_timeout,
            )

        if Provider.OLLAMA in providers:
            built[Provider.OLLAMA] = OllamaProvider(
                base_url=self.config.ollama_base_url,
                timeout=self.config.request_timeout,
            )

        return built
