"""Data models for agentdeck."""

from .agents import (
    AGENT_ROSTER,
    COORDINATOR,
    AgentConfig,
    Provider,
    RunnerKind,
    agent_description,
    agent_names,
)
from .catalog import available_models, default_model, is_known_model
from .session import Session, SessionEvent
from .turn import (
    Attachment,
    Fragment,
    Role,
    TurnContent,
    TurnOutcome,
    TurnStatus,
)

__all__ = [
    "AGENT_ROSTER",
    "COORDINATOR",
    "AgentConfig",
    "Provider",
    "RunnerKind",
    "agent_description",
    "agent_names",
    "available_models",
    "default_model",
    "is_known_model",
    "Session",
    "SessionEvent",
    "Attachment",
    "Fragment",
    "Role",
    "TurnContent",
    "TurnOutcome",
    "TurnStatus",
]
