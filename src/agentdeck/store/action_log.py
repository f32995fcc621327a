"""Append-only log of user, agent and system actions."""

import logging
import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import List, Union

from pydantic import BaseModel, Field

from ..models.turn import Role

logger = logging.getLogger(__name__)


class ActionLogEntry(BaseModel):
    """One logged action."""

    timestamp: datetime = Field(description="When the action was logged")
    role: Role = Field(description="Who acted")
    content: str = Field(description="What was said or happened")


class ActionLog:
    """
    SQLite-backed action log.

    Writes are best effort: a failing write is logged and dropped so the
    turn being logged is never interrupted by it.
    """

    def __init__(self, db_path: Union[str, Path]):
        """
        Initialize action log.

        Args:
            db_path: Database file path
        """
        self.db_path = Path(db_path)
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Ensure database and tables exist."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with closing(sqlite3.connect(self.db_path)) as conn, conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS action_logs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        timestamp TEXT NOT NULL,
                        role TEXT NOT NULL,
                        content TEXT NOT NULL
                    )
                """)
        except (OSError, sqlite3.Error) as e:
            logger.warning(f"Action log unavailable at {self.db_path}: {e}")

    def log(self, role: Role, content: str) -> None:
        """
        Append an entry.

        Args:
            role: Role tag
            content: Entry text
        """
        try:
            with closing(sqlite3.connect(self.db_path)) as conn, conn:
                conn.execute(
                    "INSERT INTO action_logs (timestamp, role, content) VALUES (?, ?, ?)",
                    (datetime.now().isoformat(), role.value, content),
                )
        except sqlite3.Error as e:
            logger.warning(f"Failed to write action log: {e}")

    def recent(self, limit: int = 20) -> List[ActionLogEntry]:
        """
        Read the newest entries.

        Args:
            limit: Maximum number of entries

        Returns:
            Entries in chronological order
        """
        try:
            with closing(sqlite3.connect(self.db_path)) as conn:
                rows = conn.execute(
                    "SELECT timestamp, role, content FROM action_logs ORDER BY id DESC LIMIT ?",
                    (limit,),
                ).fetchall()
        except sqlite3.Error as e:
            logger.warning(f"Failed to read action log: {e}")
            return []

        return [
            ActionLogEntry(timestamp=datetime.fromisoformat(ts), role=Role(role), content=content)
            for ts, role, content in reversed(rows)
        ]
