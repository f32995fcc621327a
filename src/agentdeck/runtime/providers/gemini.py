"""Google Gemini provider (Generative Language REST API)."""

import base64
import json
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from .base import BaseProvider, ChatMessage
from ...errors import ProviderError
from ...models.agents import Provider

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiProvider(BaseProvider):
    """
    Gemini provider.

    CRITICAL: streamGenerateContent with alt=sse streams "data: {json}" lines
    GOTCHA: Gemini names the assistant role "model"
    """

    provider = Provider.GEMINI

    def __init__(
        self,
        api_key: str,
        base_url: str = GEMINI_API_URL,
        timeout: float = 300.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Gemini provider.

        Args:
            api_key: Google API key
            base_url: API base URL
            timeout: Request timeout in seconds
            client: Optional preconfigured HTTP client
        """
        super().__init__()
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def _to_content(self, message: ChatMessage) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = []
        if message.text:
            parts.append({"text": message.text})
        for attachment in message.attachments:
            parts.append({
                "inline_data": {
                    "mime_type": attachment.mime_type,
                    "data": base64.b64encode(attachment.data).decode("ascii"),
                },
            })
        role = "model" if message.role == "assistant" else "user"
        return {"role": role, "parts": parts or [{"text": ""}]}

    async def astream(
        self,
        model_name: str,
        messages: List[ChatMessage],
        system_prompt: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Stream response chunks from Gemini.

        Args:
            model_name: Gemini model name
            messages: Chat messages
            system_prompt: Optional system instruction

        Yields:
            Response chunks

        Raises:
            ProviderError: On HTTP or API errors
        """
        body: Dict[str, Any] = {"contents": [self._to_content(m) for m in messages]}
        if system_prompt:
            body["system_instruction"] = {"parts": [{"text": system_prompt}]}

        try:
            async with self.client.stream(
                "POST",
                f"{self.base_url}/models/{model_name}:streamGenerateContent",
                params={"alt": "sse"},
                headers={"x-goog-api-key": self.api_key},
                json=body,
            ) as response:
                if response.status_code >= 400:
                    detail = (await response.aread()).decode("utf-8", "replace")
                    raise ProviderError(
                        f"Gemini returned {response.status_code}: {detail.strip()}",
                        provider="GEMINI",
                        status_code=response.status_code,
                    )
                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data_str = line[5:].strip()
                    if not data_str:
                        continue
                    try:
                        data = json.loads(data_str)
                    except json.JSONDecodeError:
                        self.logger.debug(f"Failed to parse SSE data: {data_str}")
                        continue
                    if "error" in data:
                        error = data["error"]
                        message = error.get("message", error) if isinstance(error, dict) else error
                        raise ProviderError(f"Gemini error: {message}", provider="GEMINI")
                    for text in _candidate_texts(data):
                        yield text

        except httpx.HTTPError as e:
            self.logger.error(f"Gemini streaming error: {e}")
            raise ProviderError(f"Gemini streaming error: {e}", provider="GEMINI") from e

    async def aclose(self) -> None:
        await self.client.aclose()


def _candidate_texts(data: Dict[str, Any]) -> List[str]:
    """Extract visible text parts of the first candidate, skipping thoughts."""
    candidates = data.get("candidates") or []
    if not candidates:
        return []
    parts = candidates[0].get("content", {}).get("parts", [])
    return [p["text"] for p in parts if p.get("text") and not p.get("thought")]
