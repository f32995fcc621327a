"""Agent roster, providers and per-agent model selection."""

from enum import Enum
from typing import List, Tuple

from pydantic import BaseModel, Field, field_validator


class Provider(str, Enum):
    """Supported model providers. Values double as the persisted wire names."""

    OLLAMA = "OLLAMA"
    GEMINI = "GEMINI"
    BEDROCK = "BEDROCK"

    @classmethod
    def parse(cls, text: str) -> "Provider":
        """
        Parse a provider name typed by the user (case-insensitive).

        Raises:
            ValueError: If the name matches no provider
        """
        try:
            return cls(text.strip().upper())
        except ValueError:
            raise ValueError(f"Unknown provider: {text!r}") from None


class RunnerKind(str, Enum):
    """Execution runner kinds. They differ only in session durability."""

    IN_MEMORY = "IN_MEMORY"  # Sessions live for the process only
    SQLITE = "SQLITE"  # Sessions persisted in the per-user data dir

    @classmethod
    def parse(cls, text: str) -> "RunnerKind":
        """
        Parse a runner kind from user input.

        Accepts the wire name, a lowercase/dashed spelling, or a 1-based index.

        Raises:
            ValueError: If nothing matches
        """
        value = text.strip()
        members = list(cls)
        if value.isdigit():
            index = int(value) - 1
            if 0 <= index < len(members):
                return members[index]
            raise ValueError(f"Runner index out of range: {value}")
        try:
            return cls(value.upper().replace("-", "_"))
        except ValueError:
            raise ValueError(f"Unknown runner kind: {text!r}") from None


COORDINATOR = "Coordinator"

# (name, role description) in display order
AGENT_ROSTER: Tuple[Tuple[str, str], ...] = (
    (COORDINATOR, "Leads the team, talks to the user and delegates work to specialists."),
    ("Coder", "Reads, writes and refactors source code."),
    ("SysAdmin", "Runs shell commands and inspects the local system."),
    ("Tester", "Writes and runs tests, reports failures."),
    ("DocWriter", "Writes and maintains documentation."),
    ("SecurityAuditor", "Reviews code and configuration for vulnerabilities."),
    ("Architect", "Reviews structure and proposes design changes."),
    ("DatabaseAdmin", "Designs schemas and writes queries."),
    ("DevOps", "Handles builds, containers and deployment."),
    ("DataAnalyst", "Analyzes data files and produces summaries."),
    ("GoalTracker", "Tracks goals and progress across the session."),
    ("CodeEditor", "Applies precise, minimal edits to existing files."),
)


def agent_names() -> List[str]:
    """Return the roster's agent names in display order."""
    return [name for name, _ in AGENT_ROSTER]


def agent_description(name: str) -> str:
    """Return the role description for an agent, or an empty string."""
    for agent, description in AGENT_ROSTER:
        if agent == name:
            return description
    return ""


class AgentConfig(BaseModel):
    """Provider and model assignment for one agent."""

    provider: Provider = Field(description="Model provider")
    model_name: str = Field(description="Provider-specific model identifier")

    class Config:
        """Pydantic configuration."""

        frozen = True

    @field_validator("model_name")
    @classmethod
    def _model_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("model name must not be empty")
        return value

    def encode(self) -> str:
        """Encode as the persisted ``PROVIDER|MODEL`` record."""
        return f"{self.provider.value}|{self.model_name}"

    @classmethod
    def decode(cls, raw: str) -> "AgentConfig":
        """
        Decode a persisted ``PROVIDER|MODEL`` record.

        The provider must match a wire name exactly. Only the first ``|``
        separates the fields; the model may itself contain ``|``.

        Raises:
            ValueError: If the record is malformed or names an unknown provider
        """
        provider_name, sep, model_name = raw.partition("|")
        if not sep:
            raise ValueError(f"Malformed agent config record: {raw!r}")
        try:
            provider = Provider(provider_name)
        except ValueError:
            raise ValueError(f"Unknown provider in record: {provider_name!r}") from None
        return cls(provider=provider, model_name=model_name)
