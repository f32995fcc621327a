"""CLI configuration module."""

from .cli_config import (
    CLIConfig,
    ensure_directories,
    get_action_log_path,
    get_data_dir,
    get_history_path,
    get_sessions_path,
    get_store_path,
    get_summary_path,
    load_config,
)

__all__ = [
    "CLIConfig",
    "ensure_directories",
    "get_action_log_path",
    "get_data_dir",
    "get_history_path",
    "get_sessions_path",
    "get_store_path",
    "get_summary_path",
    "load_config",
]
