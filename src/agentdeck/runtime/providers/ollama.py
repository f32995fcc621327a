"""Ollama provider for local models."""

import base64
import json
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from .base import BaseProvider, ChatMessage
from ...errors import ProviderError
from ...models.agents import Provider

DEFAULT_BASE_URL = "http://localhost:11434"


class OllamaProvider(BaseProvider):
    """
    Ollama provider for local model access.

    PATTERN: HTTP-based API communication with async httpx
    GOTCHA: Models must be pulled before use with ollama pull
    GOTCHA: Streaming uses newline-delimited JSON
    """

    provider = Provider.OLLAMA

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 300.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Ollama provider.

        Args:
            base_url: Ollama server URL
            timeout: Request timeout in seconds (large models load slowly)
            client: Optional preconfigured HTTP client
        """
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def list_models(self) -> List[str]:
        """
        List models pulled on the local server.

        Returns:
            Model names

        Raises:
            ProviderError: If the server cannot be reached
        """
        try:
            response = await self.client.get(f"{self.base_url}/api/tags")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"Could not list Ollama models: {e}", provider="OLLAMA") from e

        return [m["name"] for m in data.get("models", []) if m.get("name")]

    def _to_payload(self, message: ChatMessage) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"role": message.role, "content": message.text}
        if message.attachments:
            payload["images"] = [
                base64.b64encode(a.data).decode("ascii") for a in message.attachments
            ]
        return payload

    async def astream(
        self,
        model_name: str,
        messages: List[ChatMessage],
        system_prompt: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Stream response from Ollama's /api/chat endpoint.

        Args:
            model_name: Local model name
            messages: Chat messages
            system_prompt: Optional system instruction

        Yields:
            Response chunks

        Raises:
            ProviderError: On HTTP or server errors
        """
        chat = [self._to_payload(m) for m in messages]
        if system_prompt:
            chat.insert(0, {"role": "system", "content": system_prompt})

        payload = {"model": model_name, "messages": chat, "stream": True}

        try:
            async with self.client.stream(
                "POST",
                f"{self.base_url}/api/chat",
                json=payload,
            ) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode("utf-8", "replace")
                    raise ProviderError(
                        f"Ollama returned {response.status_code}: {body.strip()}",
                        provider="OLLAMA",
                        status_code=response.status_code,
                    )
                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        self.logger.warning(f"Failed to parse line: {line}")
                        continue
                    if data.get("error"):
                        raise ProviderError(f"Ollama error: {data['error']}", provider="OLLAMA")
                    content = data.get("message", {}).get("content", "")
                    if content:
                        yield content
                    if data.get("done"):
                        break

        except httpx.HTTPError as e:
            self.logger.error(f"Ollama streaming error: {e}")
            raise ProviderError(f"Ollama streaming error: {e}", provider="OLLAMA") from e

    async def aclose(self) -> None:
        await self.client.aclose()
