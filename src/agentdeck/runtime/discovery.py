"""Model discovery per provider."""

import logging
from typing import List

from .providers.ollama import OllamaProvider
from ..models.agents import Provider
from ..models.catalog import available_models

logger = logging.getLogger(__name__)


async def discover_models(provider: Provider, ollama_base_url: str, timeout: float = 5.0) -> List[str]:
    """
    List selectable models for a provider.

    GEMINI and BEDROCK come from the fixed catalog; OLLAMA asks the local server.

    Raises:
        ProviderError: If the Ollama server cannot be reached
    """
    if provider != Provider.OLLAMA:
        return available_models(provider)

    ollama = OllamaProvider(base_url=ollama_base_url, timeout=timeout)
    try:
        models = await ollama.list_models()
    finally:
        await ollama.aclose()
    logger.debug(f"Discovered {len(models)} Ollama models")
    return models
