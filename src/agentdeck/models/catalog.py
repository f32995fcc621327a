"""Default and selectable models per provider."""

from typing import Dict, List

from .agents import Provider

DEFAULT_MODELS: Dict[Provider, str] = {
    Provider.OLLAMA: "devstral-small-2",
    Provider.GEMINI: "gemini-2.5-flash",
    Provider.BEDROCK: "anthropic.claude-3-sonnet-20240229-v1:0",
}

# Ollama models are discovered from the local server, see runtime.discovery
_CATALOG: Dict[Provider, List[str]] = {
    Provider.OLLAMA: [],
    Provider.GEMINI: [
        "gemini-3-pro-preview",
        "gemini-3-flash-preview",
        "gemini-2.5-pro",
        "gemini-2.5-flash",
        "gemini-2.5-flash-lite",
        "gemini-2.0-flash",
        "gemini-2.0-flash-lite",
        "gemini-1.5-pro",
        "gemini-1.5-flash",
    ],
    Provider.BEDROCK: [
        "anthropic.claude-3-sonnet-20240229-v1:0",
        "anthropic.claude-3-haiku-20240307-v1:0",
        "anthropic.claude-3-5-sonnet-20240620-v1:0",
        "meta.llama3-70b-instruct-v1:0",
        "meta.llama3-8b-instruct-v1:0",
        "amazon.titan-text-express-v1",
    ],
}


def default_model(provider: Provider) -> str:
    """Return the default model name for a provider."""
    return DEFAULT_MODELS[provider]


def available_models(provider: Provider) -> List[str]:
    """
    Return the fixed model catalog for a provider.

    Returns an empty list for OLLAMA; its models are discovered at runtime.
    """
    return list(_CATALOG[provider])


def is_known_model(provider: Provider, model_name: str) -> bool:
    """
    Check a model name against the catalog.

    Any name is accepted for OLLAMA.
    """
    if provider == Provider.OLLAMA:
        return True
    return model_name in _CATALOG[provider]
