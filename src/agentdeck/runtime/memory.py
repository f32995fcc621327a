"""Recall of per-project notes from the config store."""

import logging
from typing import Optional

from ..errors import StoreFailure
from ..store.config_store import ConfigStore

logger = logging.getLogger(__name__)


class ProjectMemoryRecall:
    """Reads the current project's saved notes for agent prompts."""

    def __init__(self, store: ConfigStore, project_path: str):
        self.store = store
        self.project_path = project_path

    def recall(self) -> Optional[str]:
        """
        Get the project's notes.

        Returns:
            Notes text, or None when there are none or the store is unreadable
        """
        try:
            return self.store.get_memory(self.project_path)
        except StoreFailure as e:
            logger.warning(f"Could not recall project memory: {e}")
            return None
