"""Model providers."""

from .base import BaseProvider, ChatMessage
from .bedrock import BedrockProvider
from .gemini import GeminiProvider
from .ollama import OllamaProvider

__all__ = [
    "BaseProvider",
    "ChatMessage",
    "BedrockProvider",
    "GeminiProvider",
    "OllamaProvider",
]
