"""Persistent storage: config store and action log."""

from .action_log import ActionLog, ActionLogEntry
from .config_store import AGENT_CONFIGS, PROJECT_MEMORIES, ConfigStore

__all__ = [
    "ActionLog",
    "ActionLogEntry",
    "AGENT_CONFIGS",
    "PROJECT_MEMORIES",
    "ConfigStore",
]
