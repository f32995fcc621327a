"""Session services: where a backend keeps conversation history."""

import json
import logging
import sqlite3
import uuid
from abc import ABC, abstractmethod
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

from ..models.session import Session, SessionEvent

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """
    Generate a unique session ID.

    Format: {timestamp}_{short_uuid}
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    short_uuid = str(uuid.uuid4())[:8]
    return f"{timestamp}_{short_uuid}"


class SessionService(ABC):
    """Creates sessions and records their events."""

    @abstractmethod
    def create_session(self, app_id: str, agent_name: str) -> Session:
        """Create and store a new, empty session."""

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[Session]:
        """Load a session, or None if unknown."""

    @abstractmethod
    def append_event(self, session_id: str, event: SessionEvent) -> None:
        """Append one event to a stored session."""

    def close(self) -> None:
        """Release resources."""


class InMemorySessionService(SessionService):
    """Sessions that live only as long as the process."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}

    def create_session(self, app_id: str, agent_name: str) -> Session:
        session = Session(session_id=generate_session_id(), app_id=app_id, agent_name=agent_name)
        self._sessions[session.session_id] = session
        return session.model_copy(deep=True)

    def get_session(self, session_id: str) -> Optional[Session]:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    def append_event(self, session_id: str, event: SessionEvent) -> None:
        session = self._sessions.get(session_id)
        if session is None:
            raise KeyError(session_id)
        session.events.append(event)


class SqliteSessionService(SessionService):
    """
    Session service using SQLite for persistence.

    Sessions are stored in ~/.agentdeck/sessions.db
    """

    def __init__(self, db_path: Union[str, Path]):
        """
        Initialize SQLite session service.

        Args:
            db_path: Database file path

        Raises:
            sqlite3.Error: If the database cannot be created
        """
        self.db_path = Path(db_path)
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Ensure database and tables exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with closing(sqlite3.connect(self.db_path)) as conn, conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    session_id TEXT PRIMARY KEY,
                    app_id TEXT NOT NULL,
                    agent_name TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    state_json TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_sessions_updated
                ON sessions(updated_at DESC)
            """)

    def _save(self, session: Session) -> None:
        with closing(sqlite3.connect(self.db_path)) as conn, conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO sessions
                (session_id, app_id, agent_name, created_at, updated_at, state_json)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    session.session_id,
                    session.app_id,
                    session.agent_name,
                    session.created_at.isoformat(),
                    datetime.now().isoformat(),
                    session.model_dump_json(),
                ),
            )

    def create_session(self, app_id: str, agent_name: str) -> Session:
        session = Session(session_id=generate_session_id(), app_id=app_id, agent_name=agent_name)
        self._save(session)
        logger.debug(f"Created session {session.session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[Session]:
        with closing(sqlite3.connect(self.db_path)) as conn:
            row = conn.execute(
                "SELECT state_json FROM sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()

        if not row:
            return None

        try:
            return Session(**json.loads(row[0]))
        except (ValueError, TypeError) as e:
            logger.error(f"Failed to load session {session_id}: {e}")
            return None

    def append_event(self, session_id: str, event: SessionEvent) -> None:
        session = self.get_session(session_id)
        if session is None:
            raise KeyError(session_id)
        session.events.append(event)
        self._save(session)
