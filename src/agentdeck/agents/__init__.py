"""Agent configuration registry."""

from .registry import AgentConfigRegistry

__all__ = ["AgentConfigRegistry"]
