"""Owns the active execution backend and session, and their lifecycle."""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterator, List, Optional, Tuple

from .engine import TurnEngine
from ..agents.registry import AgentConfigRegistry
from ..errors import CompactionFailure, TurnInProgress
from ..models.agents import COORDINATOR, AgentConfig, RunnerKind
from ..models.session import Session
from ..models.turn import Attachment, Role, TurnContent, TurnOutcome
from ..runtime.backend import AgentBackend
from ..store.action_log import ActionLog

logger = logging.getLogger(__name__)

SUMMARY_REQUEST = "Summarize our conversation so far."
SUMMARY_PREAMBLE = "Here is the summary of the previous session:\n\n"
RESET_MESSAGE = "Session reset by user."

BackendBuilder = Callable[[RunnerKind, Dict[str, AgentConfig]], AgentBackend]
ConfirmSwitch = Callable[[RunnerKind, RunnerKind], Awaitable[bool]]


class SwitchResult(str, Enum):
    """Outcome of a runner switch request."""

    UNCHANGED = "unchanged"  # Already on that kind
    DECLINED = "declined"  # User did not confirm
    SWITCHED = "switched"


class ExecutionBackendManager:
    """
    Execution backend manager.

    The active runner kind, backend and session always change together:
    a replacement is fully built before anything is swapped, and a failed
    build leaves the previous backend and session in place.

    Lifecycle operations are rejected while a turn is streaming.
    """

    def __init__(
        self,
        registry: AgentConfigRegistry,
        build_backend: BackendBuilder,
        app_id: str,
        action_log: Optional[ActionLog] = None,
    ):
        """
        Initialize manager. Call start() before use.

        Args:
            registry: Agent config registry (source of build snapshots)
            build_backend: Backend builder, usually a BackendFactory
            app_id: Application identifier for new sessions
            action_log: Action log for lifecycle events
        """
        self.registry = registry
        self.build_backend = build_backend
        self.app_id = app_id
        self.action_log = action_log

        self._kind: Optional[RunnerKind] = None
        self._backend: Optional[AgentBackend] = None
        self._session: Optional[Session] = None
        self._pending_summary: Optional[str] = None
        self._busy = False

    @property
    def kind(self) -> RunnerKind:
        if self._kind is None:
            raise RuntimeError("ExecutionBackendManager.start() has not been called")
        return self._kind

    @property
    def backend(self) -> AgentBackend:
        if self._backend is None:
            raise RuntimeError("ExecutionBackendManager.start() has not been called")
        return self._backend

    @property
    def session(self) -> Session:
        """
        Active session.

        Created on first access after a coordinator rebuild invalidated it.

        Raises:
            BackendBuildFailure: If the lazy creation fails
        """
        if self._session is None:
            self._session = self.backend.create_session(self.app_id, COORDINATOR)
            logger.debug(f"Created session {self._session.session_id} lazily")
        return self._session

    @property
    def has_session(self) -> bool:
        return self._session is not None

    @property
    def pending_summary(self) -> Optional[str]:
        """Summary waiting to seed the next turn after a compaction."""
        return self._pending_summary

    @property
    def busy(self) -> bool:
        return self._busy

    def _log(self, role: Role, text: str) -> None:
        if self.action_log is not None:
            self.action_log.log(role, text)

    def _ensure_idle(self) -> None:
        if self._busy:
            raise TurnInProgress("A turn is in progress; wait for it to finish or press Esc")

    @contextmanager
    def _turn_guard(self) -> Iterator[None]:
        self._ensure_idle()
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    async def _build(self, kind: RunnerKind) -> Tuple[AgentBackend, Session]:
        """Build a backend and its first session, or raise leaving nothing behind."""
        backend = self.build_backend(kind, self.registry.snapshot())
        try:
            session = backend.create_session(self.app_id, COORDINATOR)
        except BaseException:
            await backend.aclose()
            raise
        return backend, session

    async def start(self, kind: RunnerKind) -> Session:
        """
        Build the initial backend and session.

        Raises:
            BackendBuildFailure: Startup cannot continue
        """
        self._backend, self._session = await self._build(kind)
        self._kind = kind
        logger.info(f"Started {kind.value} runner, session {self._session.session_id}")
        return self._session

    async def request_switch(self, kind: RunnerKind, confirm: ConfirmSwitch) -> SwitchResult:
        """
        Switch to another runner kind.

        Args:
            kind: Requested runner kind
            confirm: Asked (current, requested) only when the kind differs

        Returns:
            Switch result

        Raises:
            TurnInProgress: A turn is streaming
            BackendBuildFailure: The new backend or session could not be built;
                the previous ones stay active
        """
        self._ensure_idle()
        if kind == self._kind:
            return SwitchResult.UNCHANGED

        if not await confirm(self.kind, kind):
            return SwitchResult.DECLINED

        backend, session = await self._build(kind)
        previous = self._backend
        self._kind, self._backend, self._session = kind, backend, session

        if previous is not None:
            await previous.aclose()

        self._log(Role.SYSTEM, f"Switched runner to {kind.value}.")
        logger.info(f"Switched to {kind.value} runner, session {session.session_id}")
        return SwitchResult.SWITCHED

    async def reset(self) -> Session:
        """
        Start a fresh session on the same backend.

        Raises:
            TurnInProgress: A turn is streaming
            BackendBuildFailure: Session creation failed; the old session stays
        """
        self._ensure_idle()
        session = self.backend.create_session(self.app_id, COORDINATOR)
        self._session = session
        self._pending_summary = None
        self._log(Role.SYSTEM, RESET_MESSAGE)
        return session

    async def compact(self) -> str:
        """
        Summarize the active session, then continue in a fresh one.

        The summary seeds the next submitted turn.

        Returns:
            Summary text

        Raises:
            TurnInProgress: A turn is streaming
            CompactionFailure: No active session, empty summary or failed
                summarizing turn; the active session is unchanged
            BackendBuildFailure: The new session could not be created
        """
        with self._turn_guard():
            # A rebuilt backend has no conversation yet
            if not self.has_session:
                raise CompactionFailure("Nothing to compact.")
            summary = await self._drain(SUMMARY_REQUEST)

        if not summary.strip():
            raise CompactionFailure("Agent returned empty summary.")

        session = self.backend.create_session(self.app_id, COORDINATOR)
        self._session = session
        self._pending_summary = summary
        self._log(Role.SYSTEM, f"Session compacted into {session.session_id}.")
        return summary

    async def _drain(self, text: str) -> str:
        """Run a turn to completion without display and return its text."""
        stream = self.backend.submit_turn(COORDINATOR, self.session.session_id, TurnContent(text))
        parts: List[str] = []
        try:
            async for fragment in stream:
                if fragment.text:
                    parts.append(fragment.text)
        except Exception as e:
            raise CompactionFailure(f"Summary failed: {e}") from e
        finally:
            await stream.dispose()
        return "".join(parts)

    async def on_agent_config_changed(self, agent_name: str) -> bool:
        """
        React to an agent config edit.

        Only coordinator edits rebuild the backend. The session is
        invalidated and recreated on next access.

        Returns:
            True if the backend was rebuilt

        Raises:
            TurnInProgress: A turn is streaming
            BackendBuildFailure: Rebuild failed; the previous backend and
                session stay active
        """
        if not self.registry.is_coordinator(agent_name):
            return False

        self._ensure_idle()
        backend = self.build_backend(self.kind, self.registry.snapshot())
        previous = self._backend
        self._backend = backend
        self._session = None

        if previous is not None:
            await previous.aclose()

        logger.info("Rebuilt backend after coordinator change")
        return True

    def prepare_content(
        self,
        text: str,
        attachments: Optional[List[Attachment]] = None,
    ) -> TurnContent:
        """
        Build the content of the next turn, consuming any pending summary.
        """
        if self._pending_summary is not None:
            text = f"{SUMMARY_PREAMBLE}{self._pending_summary}\n\n{text}"
            self._pending_summary = None
        return TurnContent(text=text, attachments=list(attachments or []))

    async def run_turn(
        self,
        engine: TurnEngine,
        text: str,
        attachments: Optional[List[Attachment]] = None,
    ) -> TurnOutcome:
        """
        Run one user turn against the coordinator in the active session.

        Raises:
            TurnInProgress: Another turn is streaming
            BackendBuildFailure: A lazily created session could not be built
        """
        with self._turn_guard():
            session = self.session
            content = self.prepare_content(text, attachments)
            return await engine.run_turn(self.backend, session, content, COORDINATOR)

    async def aclose(self) -> None:
        """Close the active backend."""
        if self._backend is not None:
            await self._backend.aclose()
            self._backend = None
