"""CLI configuration management."""

import os
import logging
from pathlib import Path
from typing import Optional, Dict, Any

import yaml
from pydantic import BaseModel, Field, field_validator

from ..models.agents import Provider, RunnerKind

logger = logging.getLogger(__name__)

ENV_PREFIX = "AGENTDECK_"


class CLIConfig(BaseModel):
    """CLI configuration model."""

    # Display settings
    theme: str = Field(default="monokai", description="Color theme")
    max_history_size: int = Field(default=1000, description="Max command history")

    # Per-user data directory, created on first use
    data_dir: str = Field(default="~/.agentdeck", description="Data directory")
    store_file: str = Field(
        default="central_memory.db",
        description="Config store file (project memories, agent configs)",
    )
    sessions_file: str = Field(
        default="sessions.db",
        description="Session file used by the SQLITE runner",
    )
    action_log_file: str = Field(default="action_log.db", description="Action log file")
    history_file: str = Field(default="history", description="Input history file")
    summary_file: str = Field(
        default="session_summary.txt",
        description="Prior-session summary, relative to the working directory",
    )

    # Execution
    app_id: str = Field(default="agentdeck", description="Application identifier")
    default_provider: Provider = Field(default=Provider.OLLAMA)
    default_model: Optional[str] = Field(
        default=None,
        description="Default model (None = provider default)",
    )
    default_runner: Optional[RunnerKind] = Field(
        default=None,
        description="Runner kind (None = ask at startup)",
    )
    poll_interval: float = Field(
        default=0.03,
        gt=0.0,
        le=0.05,
        description="Seconds between cancel-key polls while a turn streams",
    )

    # Providers
    ollama_base_url: str = Field(default="http://localhost:11434")
    aws_region: Optional[str] = Field(default=None, description="Bedrock region")
    request_timeout: float = Field(default=300.0, gt=0.0, description="Provider timeout")

    class Config:
        """Pydantic configuration."""

        extra = "allow"  # Allow extra fields from config files

    @field_validator("default_provider", "default_runner", mode="before")
    @classmethod
    def _normalize_enum_names(cls, value: Any) -> Any:
        """Accept lowercase or dashed spellings from YAML and env."""
        if isinstance(value, str):
            return value.strip().upper().replace("-", "_")
        return value


def get_config_paths() -> list[Path]:
    """
    Get configuration file paths in priority order.

    Returns:
        List of paths, highest priority last
    """
    return [
        Path.home() / ".agentdeck" / "config.yaml",
        Path.cwd() / ".agentdeck" / "config.yaml",
    ]


def load_config(config_path: Optional[str] = None) -> CLIConfig:
    """
    Load CLI configuration from files.

    Configuration is merged in this order (later overrides earlier):
    1. Default values
    2. Global config (~/.agentdeck/config.yaml)
    3. Project config (./.agentdeck/config.yaml)
    4. Explicit config_path if provided
    5. Environment variables (AGENTDECK_*)

    Args:
        config_path: Optional explicit config file path

    Returns:
        Merged CLIConfig instance
    """
    merged_config: Dict[str, Any] = {}

    config_paths = get_config_paths()
    if config_path:
        config_paths.append(Path(config_path))

    for path in config_paths:
        if path.exists():
            try:
                with open(path) as f:
                    file_config = yaml.safe_load(f) or {}
                # Only merge 'cli' section if present, otherwise use whole file
                if "cli" in file_config:
                    merged_config.update(file_config["cli"] or {})
                else:
                    merged_config.update(file_config)
                logger.debug(f"Loaded config from {path}")
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {path}: {e}")

    merged_config.update(_get_env_overrides())

    return CLIConfig(**merged_config)


def _get_env_overrides() -> Dict[str, Any]:
    """
    Get configuration overrides from environment variables.

    Environment variables are prefixed with AGENTDECK_.
    Boolean values: "true", "yes" are True; "false", "no" are False.
    Numeric values are converted automatically.

    Returns:
        Dictionary of overrides
    """
    overrides: Dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        # AGENTDECK_POLL_INTERVAL -> poll_interval
        config_key = key[len(ENV_PREFIX):].lower()

        if value.lower() in ("true", "yes"):
            overrides[config_key] = True
        elif value.lower() in ("false", "no"):
            overrides[config_key] = False
        else:
            try:
                overrides[config_key] = int(value)
            except ValueError:
                try:
                    overrides[config_key] = float(value)
                except ValueError:
                    overrides[config_key] = value

    return overrides


def get_data_dir(config: CLIConfig) -> Path:
    """
    Get the per-user data directory.

    Args:
        config: CLI configuration

    Returns:
        Expanded data directory path
    """
    return Path(config.data_dir).expanduser()


def get_store_path(config: CLIConfig) -> Path:
    """Path of the config store database."""
    return get_data_dir(config) / config.store_file


def get_sessions_path(config: CLIConfig) -> Path:
    """Path of the SQLITE runner's session database."""
    return get_data_dir(config) / config.sessions_file


def get_action_log_path(config: CLIConfig) -> Path:
    """Path of the action log database."""
    return get_data_dir(config) / config.action_log_file


def get_history_path(config: CLIConfig) -> Path:
    """Path of the prompt history file."""
    return get_data_dir(config) / config.history_file


def get_summary_path(config: CLIConfig, working_directory: Optional[Path] = None) -> Path:
    """
    Path of the prior-session summary file.

    Args:
        config: CLI configuration
        working_directory: Base directory (default: current directory)
    """
    return (working_directory or Path.cwd()) / config.summary_file


def ensure_directories(config: CLIConfig) -> None:
    """
    Ensure all required directories exist.

    Args:
        config: CLI configuration
    """
    get_data_dir(config).mkdir(parents=True, exist_ok=True)
