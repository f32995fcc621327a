"""Execution runtime: backends, sessions and providers."""

from .backend import AgentBackend, BackendFactory
from .sessions import InMemorySessionService, SessionService, SqliteSessionService
from .stream import FragmentStream

__all__ = [
    "AgentBackend",
    "BackendFactory",
    "InMemorySessionService",
    "SessionService",
    "SqliteSessionService",
    "FragmentStream",
]
