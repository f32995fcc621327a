"""Command history management."""

import logging
from pathlib import Path
from typing import Optional, Union

from prompt_toolkit.history import FileHistory, History

logger = logging.getLogger(__name__)


class HistoryManager:
    """
    Command history manager.

    Integrates with prompt_toolkit's FileHistory for persistence.
    """

    def __init__(self, history_path: Union[str, Path], max_size: int = 1000):
        """
        Initialize history manager.

        Args:
            history_path: History file path
            max_size: Maximum number of lines kept by trim_history()
        """
        self.history_path = Path(history_path)
        self.max_size = max_size
        self._history: Optional[FileHistory] = None

    def get_history(self) -> History:
        """
        Get prompt_toolkit History instance.

        Returns:
            FileHistory instance
        """
        if self._history is None:
            self.history_path.parent.mkdir(parents=True, exist_ok=True)
            self._history = FileHistory(str(self.history_path))
            logger.debug(f"Initialized history from {self.history_path}")

        return self._history

    def trim_history(self) -> int:
        """
        Trim the history file to max_size lines.

        Returns:
            Number of lines removed
        """
        if not self.history_path.exists():
            return 0

        try:
            with open(self.history_path, "r", encoding="utf-8") as f:
                lines = f.readlines()

            if len(lines) <= self.max_size:
                return 0

            removed = len(lines) - self.max_size
            with open(self.history_path, "w", encoding="utf-8") as f:
                f.writelines(lines[-self.max_size:])

            logger.info(f"Trimmed {removed} history lines")
            return removed

        except OSError as e:
            logger.warning(f"Failed to trim history: {e}")
            return 0
