"""In-memory map of agent name to provider/model, backed by the config store."""

import logging
from typing import Dict, List, Optional

from ..errors import InvalidSelection
from ..models.agents import COORDINATOR, AgentConfig, Provider, agent_names
from ..models.catalog import default_model
from ..store.config_store import ConfigStore

logger = logging.getLogger(__name__)


class AgentConfigRegistry:
    """
    Registry of per-agent provider/model assignments.

    Every roster agent always has an entry. Callers that change the
    coordinator must ask the execution manager to rebuild afterwards.
    """

    def __init__(
        self,
        store: ConfigStore,
        default_provider: Provider = Provider.OLLAMA,
        default_model_name: Optional[str] = None,
    ):
        """
        Initialize registry with process-wide defaults for every agent.

        Args:
            store: Config store used for persistence
            default_provider: Default provider
            default_model_name: Default model (None = provider default)
        """
        self.store = store
        self.default = AgentConfig(
            provider=default_provider,
            model_name=default_model_name or default_model(default_provider),
        )
        self._configs: Dict[str, AgentConfig] = {name: self.default for name in agent_names()}

    def load_overrides(self) -> int:
        """
        Overlay persisted assignments onto the defaults.

        Invalid records are skipped by the store with a warning.

        Returns:
            Number of agents overridden

        Raises:
            StoreFailure: If the store cannot be read; defaults stay in effect
        """
        overrides = self.store.load_agent_configs()
        self._configs.update(overrides)
        logger.debug(f"Loaded {len(overrides)} agent config overrides")
        return len(overrides)

    def resolve_name(self, name: str) -> str:
        """
        Resolve a user-typed agent name (case-insensitive) to a roster name.

        Raises:
            InvalidSelection: If no roster agent matches
        """
        wanted = name.strip().lower()
        for agent in self._configs:
            if agent.lower() == wanted:
                return agent
        raise InvalidSelection(f"Unknown agent: {name}")

    def get(self, agent_name: str) -> AgentConfig:
        """Get one agent's assignment."""
        return self._configs[self.resolve_name(agent_name)]

    def snapshot(self) -> Dict[str, AgentConfig]:
        """Return a copy of all assignments."""
        return dict(self._configs)

    def names(self) -> List[str]:
        """Agent names, sorted."""
        return sorted(self._configs)

    def is_coordinator(self, agent_name: str) -> bool:
        """Check whether a name denotes the coordinator."""
        return agent_name.strip().lower() == COORDINATOR.lower()

    def set(self, agent_name: str, provider: Provider, model_name: str) -> AgentConfig:
        """
        Assign a provider/model to an agent and persist it.

        The store is written first; on StoreFailure the in-memory map is
        left untouched.

        Args:
            agent_name: Agent name (case-insensitive)
            provider: Provider
            model_name: Model name

        Returns:
            The new assignment

        Raises:
            InvalidSelection: Unknown agent or empty model
            StoreFailure: Persisting failed
        """
        name = self.resolve_name(agent_name)
        try:
            config = AgentConfig(provider=provider, model_name=model_name)
        except ValueError as e:
            raise InvalidSelection(f"Invalid model name for {name}: {model_name!r}") from e

        self.store.save_agent_config(name, config)
        self._configs[name] = config
        logger.info(f"{name} now uses {config.provider.value} / {config.model_name}")

        return config
