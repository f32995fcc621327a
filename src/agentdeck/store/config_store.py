"""Persistent key-value store for project memories and agent configs."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from ..errors import StoreFailure
from ..models.agents import AgentConfig, agent_names

logger = logging.getLogger(__name__)

PROJECT_MEMORIES = "project_memories"
AGENT_CONFIGS = "agent_configs"

MEMORY_HEADER = "--- Saved: {timestamp} ---\n{content}"
MEMORY_SEPARATOR = "\n\n"


class ConfigStore:
    """
    SQLite-backed namespaced key-value store.

    Stored in ~/.agentdeck/central_memory.db. Every operation opens its own
    connection and transaction and closes it before returning, so the file
    is never held open between calls. The table is created on first use; a
    store that cannot be opened raises StoreFailure from each operation.
    """

    def __init__(self, db_path: Union[str, Path], timeout: float = 5.0):
        """
        Initialize config store.

        Args:
            db_path: Database file path
            timeout: Seconds to wait for a locked database
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._last_stamp: Optional[datetime] = None
        self._ready = False

    def _ensure_db(self) -> None:
        """Ensure database and tables exist."""
        if self._ready:
            return
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreFailure(f"Cannot create store directory {self.db_path.parent}: {e}") from e

        with self._open_transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS entries (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    PRIMARY KEY (namespace, key)
                )
            """)
        self._ready = True

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run one transaction against an initialized store.

        Raises:
            StoreFailure: On any sqlite error
        """
        self._ensure_db()
        with self._open_transaction() as conn:
            yield conn

    @contextmanager
    def _open_transaction(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, run one immediate transaction, always close."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout, isolation_level=None)
        except sqlite3.Error as e:
            raise StoreFailure(f"Cannot open store {self.db_path}: {e}") from e

        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                # SQLite may already have rolled back (e.g. SQLITE_FULL)
                if conn.in_transaction:
                    conn.rollback()
                raise
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            raise StoreFailure(f"Store operation failed on {self.db_path}: {e}") from e
        finally:
            conn.close()

    def put(self, namespace: str, key: str, value: str) -> None:
        """
        Insert or replace a value.

        Args:
            namespace: Namespace name
            key: Key within the namespace
            value: Value to store
        """
        with self._transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO entries (namespace, key, value) VALUES (?, ?, ?)",
                (namespace, key, value),
            )
        logger.debug(f"Stored {namespace}/{key}")

    def get(self, namespace: str, key: str) -> Optional[str]:
        """
        Get a value.

        Args:
            namespace: Namespace name
            key: Key within the namespace

        Returns:
            Stored value, or None if absent
        """
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT value FROM entries WHERE namespace = ? AND key = ?",
                (namespace, key),
            ).fetchone()
        return row[0] if row else None

    def get_all(self, namespace: str) -> Dict[str, str]:
        """
        Get every entry of a namespace.

        Returns:
            A new dict; mutating it does not affect the store
        """
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT key, value FROM entries WHERE namespace = ? ORDER BY key",
                (namespace,),
            ).fetchall()
        return {key: value for key, value in rows}

    def _next_stamp(self) -> str:
        """ISO-8601 UTC timestamp, strictly increasing within this process."""
        now = datetime.now(timezone.utc)
        if self._last_stamp is not None and now <= self._last_stamp:
            now = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = now
        return now.isoformat(timespec="microseconds").replace("+00:00", "Z")

    def append_memory(self, project_path: str, content: str) -> str:
        """
        Append a timestamped note to a project's memory.

        The read and the write happen in one transaction, so concurrent
        appends never lose each other's notes.

        Args:
            project_path: Absolute project path (memory key)
            content: Note text

        Returns:
            The full memory text after the append
        """
        entry = MEMORY_HEADER.format(timestamp=self._next_stamp(), content=content)

        with self._transaction() as conn:
            row = conn.execute(
                "SELECT value FROM entries WHERE namespace = ? AND key = ?",
                (PROJECT_MEMORIES, project_path),
            ).fetchone()
            value = f"{row[0]}{MEMORY_SEPARATOR}{entry}" if row and row[0] else entry
            conn.execute(
                "INSERT OR REPLACE INTO entries (namespace, key, value) VALUES (?, ?, ?)",
                (PROJECT_MEMORIES, project_path, value),
            )

        logger.debug(f"Appended memory for {project_path}")
        return value

    def get_memory(self, project_path: str) -> Optional[str]:
        """Get a project's memory text."""
        return self.get(PROJECT_MEMORIES, project_path)

    def get_all_memories(self) -> Dict[str, str]:
        """Get every project's memory text, keyed by project path."""
        return self.get_all(PROJECT_MEMORIES)

    def save_agent_config(self, agent_name: str, config: AgentConfig) -> None:
        """Persist one agent's provider/model assignment."""
        self.put(AGENT_CONFIGS, agent_name, config.encode())

    def load_agent_configs(self) -> Dict[str, AgentConfig]:
        """
        Load and decode persisted agent configs.

        Records naming an unknown agent or an unknown provider are skipped
        with a warning.

        Returns:
            Decoded configs keyed by agent name
        """
        roster = set(agent_names())
        configs: Dict[str, AgentConfig] = {}

        for agent_name, raw in self.get_all(AGENT_CONFIGS).items():
            if agent_name not in roster:
                logger.warning(f"Ignoring saved config for unknown agent {agent_name!r}")
                continue
            try:
                configs[agent_name] = AgentConfig.decode(raw)
            except ValueError as e:
                logger.warning(f"Ignoring saved config for {agent_name}: {e}")

        return configs
