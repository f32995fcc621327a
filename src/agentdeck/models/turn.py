"""Turn content, fragments and outcomes."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Role(str, Enum):
    """Action log role tags."""

    USER = "USER"
    AGENT = "AGENT"
    SYSTEM = "SYSTEM"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Attachment:
    """Binary attachment sent along with a user turn (images only)."""

    name: str
    mime_type: str
    data: bytes


@dataclass
class TurnContent:
    """Content of one user turn."""

    text: str
    attachments: List[Attachment] = field(default_factory=list)


@dataclass(frozen=True)
class Fragment:
    """One incremental piece of an agent response."""

    text: Optional[str] = None


class TurnStatus(Enum):
    """How a turn ended."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class TurnOutcome:
    """
    Result of running one turn.

    ``text`` is the full response for COMPLETED and the partial response
    for CANCELLED. A FAILED turn has no text; ``reason`` says why and
    ``partial`` keeps what arrived before the error, for diagnostics only.
    """

    status: TurnStatus
    text: str = ""
    reason: Optional[str] = None
    partial: str = ""

    @classmethod
    def completed(cls, text: str) -> "TurnOutcome":
        return cls(TurnStatus.COMPLETED, text)

    @classmethod
    def cancelled(cls, partial: str) -> "TurnOutcome":
        return cls(TurnStatus.CANCELLED, partial)

    @classmethod
    def failed(cls, reason: str, partial: str = "") -> "TurnOutcome":
        return cls(TurnStatus.FAILED, "", reason, partial)

    @property
    def is_completed(self) -> bool:
        return self.status is TurnStatus.COMPLETED

    @property
    def is_cancelled(self) -> bool:
        return self.status is TurnStatus.CANCELLED

    @property
    def is_failed(self) -> bool:
        return self.status is TurnStatus.FAILED
