"""Turn execution: stream one turn while watching for the cancel key."""

import asyncio
import logging
from typing import List, Optional, Tuple

from .indicator import WaitingIndicator
from .keys import KeySource
from ..models.agents import COORDINATOR
from ..models.session import Session
from ..models.turn import Role, TurnContent, TurnOutcome
from ..output.streaming import StreamSink
from ..runtime.backend import AgentBackend
from ..runtime.stream import FragmentStream
from ..store.action_log import ActionLog

logger = logging.getLogger(__name__)

INTERRUPTED_MESSAGE = "User interrupted the agent."

_FRAGMENT = "fragment"
_DONE = "done"
_ERROR = "error"


class TurnEngine:
    """
    Runs one turn at a time.

    A producer task drains the fragment stream into a queue. The controller
    loop polls the key source at the top of every tick, then waits on the
    queue for at most one poll interval, so a cancel is seen within one
    interval whether or not fragments are flowing. At most one fragment
    already taken from the queue may still be shown after the cancel key.
    Once the stream has ended the cancel key is ignored and the turn
    finishes with the outcome the stream produced.
    """

    def __init__(
        self,
        sink: StreamSink,
        keys: KeySource,
        indicator: WaitingIndicator,
        action_log: Optional[ActionLog] = None,
        poll_interval: float = 0.03,
    ):
        """
        Initialize turn engine.

        Args:
            sink: Where fragment text is written
            keys: Cancel-key source
            indicator: Waiting indicator
            action_log: Action log for outcomes
            poll_interval: Seconds per controller tick
        """
        self.sink = sink
        self.keys = keys
        self.indicator = indicator
        self.action_log = action_log
        self.poll_interval = poll_interval

    def _log(self, role: Role, text: str) -> None:
        if self.action_log is not None:
            self.action_log.log(role, text)

    async def run_turn(
        self,
        backend: AgentBackend,
        session: Session,
        content: TurnContent,
        agent_name: str = COORDINATOR,
    ) -> TurnOutcome:
        """
        Submit a turn and stream its response until done, failed or cancelled.

        Args:
            backend: Backend to submit to
            session: Session to submit into
            content: User content
            agent_name: Agent that should answer

        Returns:
            Turn outcome
        """
        self._log(Role.USER, content.text)

        try:
            stream = backend.submit_turn(agent_name, session.session_id, content)
        except Exception as e:
            return self._failed(str(e), "")

        channel: asyncio.Queue = asyncio.Queue()
        producer = asyncio.create_task(self._produce(stream, channel))
        parts: List[str] = []
        outcome: Optional[TurnOutcome] = None

        self.indicator.start()
        indicator_visible = True
        try:
            with self.keys.capture():
                while outcome is None:
                    # A key seen after the producer finished does not cancel
                    if self.keys.poll() and not producer.done():
                        await self._dispose(producer, stream)
                        outcome = TurnOutcome.cancelled("".join(parts))
                        break

                    try:
                        kind, payload = await asyncio.wait_for(
                            channel.get(),
                            timeout=self.poll_interval,
                        )
                    except asyncio.TimeoutError:
                        if not parts:
                            self.indicator.pulse()
                        continue

                    if kind == _FRAGMENT:
                        if indicator_visible:
                            self.indicator.clear()
                            indicator_visible = False
                        parts.append(payload)
                        self.sink.write(payload)
                    elif kind == _DONE:
                        outcome = TurnOutcome.completed("".join(parts))
                    else:
                        outcome = TurnOutcome.failed(str(payload), "".join(parts))
        finally:
            if indicator_visible:
                self.indicator.clear()
            await self._dispose(producer, stream)
            self.sink.finish()

        if outcome.is_completed:
            self._log(Role.AGENT, outcome.text)
        elif outcome.is_cancelled:
            self._log(Role.SYSTEM, INTERRUPTED_MESSAGE)
        else:
            logger.error(f"Turn failed: {outcome.reason}")
            self._log(Role.ERROR, outcome.reason or "")

        return outcome

    def _failed(self, reason: str, partial: str) -> TurnOutcome:
        logger.error(f"Turn failed: {reason}")
        self._log(Role.ERROR, reason)
        return TurnOutcome.failed(reason, partial)

    @staticmethod
    async def _produce(
        stream: FragmentStream,
        channel: "asyncio.Queue[Tuple[str, object]]",
    ) -> None:
        """Move fragments from the stream to the channel, then a terminal signal."""
        try:
            async for fragment in stream:
                if fragment.text:
                    channel.put_nowait((_FRAGMENT, fragment.text))
        except Exception as e:
            channel.put_nowait((_ERROR, e))
            return
        channel.put_nowait((_DONE, None))

    @staticmethod
    async def _dispose(producer: "asyncio.Task[None]", stream: FragmentStream) -> None:
        """Stop the producer and close the stream. Safe to call repeatedly."""
        if not producer.done():
            producer.cancel()
        await asyncio.gather(producer, return_exceptions=True)
        await stream.dispose()
