"""Base model provider abstraction."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional

from ...models.agents import Provider
from ...models.turn import Attachment

logger = logging.getLogger(__name__)


@dataclass
class ChatMessage:
    """Provider-neutral chat message."""

    role: str  # "user" or "assistant"
    text: str
    attachments: List[Attachment] = field(default_factory=list)


class BaseProvider(ABC):
    """
    Abstract base class for model providers.

    One provider instance serves every agent assigned to it; the model
    name is passed per request.
    """

    provider: Provider

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.provider.value.lower()}")

    @abstractmethod
    def astream(
        self,
        model_name: str,
        messages: List[ChatMessage],
        system_prompt: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Stream response text chunks.

        Implementations are async generators. They must not swallow
        cancellation: closing the generator stops the request.

        Args:
            model_name: Provider-specific model identifier
            messages: Conversation so far, oldest first, ending with the user turn
            system_prompt: Optional system instruction

        Yields:
            Text chunks

        Raises:
            ProviderError: On transport or API failures
        """

    async def aclose(self) -> None:
        """Release network resources."""
