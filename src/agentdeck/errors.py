"""Exception hierarchy for agentdeck."""


class AgentDeckError(Exception):
    """Base exception for all agentdeck errors."""

    pass


class StoreFailure(AgentDeckError):
    """The persistent configuration store could not be read or written."""

    pass


class InvalidSelection(AgentDeckError):
    """A user choice (agent, provider, model, runner kind) was not acceptable."""

    pass


class BackendBuildFailure(AgentDeckError):
    """An execution backend or its session could not be constructed."""

    pass


class StreamFailure(AgentDeckError):
    """A fragment stream terminated with an error."""

    pass


class CompactionFailure(AgentDeckError):
    """Session compaction did not produce a usable summary."""

    pass


class TurnInProgress(AgentDeckError):
    """A lifecycle operation was requested while a turn is streaming."""

    pass


class ProviderError(AgentDeckError):
    """A model provider returned an error or could not be reached."""

    def __init__(self, message: str, provider: str = "", status_code: int = 0):
        """
        Initialize provider error.

        Args:
            message: Error message
            provider: Provider wire name
            status_code: HTTP status code, 0 when not applicable
        """
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
