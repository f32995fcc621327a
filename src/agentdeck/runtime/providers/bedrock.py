"""AWS Bedrock provider (Converse streaming API via boto3)."""

import asyncio
import threading
from typing import Any, AsyncIterator, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .base import BaseProvider, ChatMessage
from ...errors import ProviderError
from ...models.agents import Provider

_CHUNK = "chunk"
_END = "end"
_ERROR = "error"

# Seconds to wait for the worker thread once the stream is closed
_DRAIN_TIMEOUT = 2.0


class BedrockProvider(BaseProvider):
    """
    Bedrock provider.

    boto3 is synchronous, so the event stream is read in a worker thread
    and handed to the event loop with call_soon_threadsafe. Closing the
    generator closes the event stream, which unblocks the worker.
    """

    provider = Provider.BEDROCK

    def __init__(self, region_name: Optional[str] = None, client: Any = None):
        """
        Initialize Bedrock provider.

        Args:
            region_name: AWS region (None = boto3 default chain)
            client: Optional preconfigured bedrock-runtime client
        """
        super().__init__()
        self.client = client or boto3.client("bedrock-runtime", region_name=region_name)

    def _to_message(self, message: ChatMessage) -> Dict[str, Any]:
        content: List[Dict[str, Any]] = []
        if message.text:
            content.append({"text": message.text})
        for attachment in message.attachments:
            image_format = attachment.mime_type.split("/")[-1]
            content.append({
                "image": {"format": image_format, "source": {"bytes": attachment.data}},
            })
        return {"role": message.role, "content": content or [{"text": " "}]}

    async def astream(
        self,
        model_name: str,
        messages: List[ChatMessage],
        system_prompt: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Stream response chunks from Bedrock's converse_stream.

        Args:
            model_name: Bedrock model id
            messages: Chat messages
            system_prompt: Optional system instruction

        Yields:
            Response chunks

        Raises:
            ProviderError: On AWS errors
        """
        request: Dict[str, Any] = {
            "modelId": model_name,
            "messages": [self._to_message(m) for m in messages],
        }
        if system_prompt:
            request["system"] = [{"text": system_prompt}]

        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        stop = threading.Event()
        lock = threading.Lock()
        held: Dict[str, Any] = {}

        def emit(kind: str, payload: Any) -> None:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, (kind, payload))
            except RuntimeError:
                # Loop already closed; nobody is listening anymore
                stop.set()

        def release() -> None:
            with lock:
                stream = held.pop("stream", None)
            close = getattr(stream, "close", None)
            if close is None:
                return
            try:
                close()
            except Exception as e:
                self.logger.debug(f"Ignoring error while closing Bedrock stream: {e}")

        def pump() -> None:
            try:
                response = self.client.converse_stream(**request)
                stream = response["stream"]
                with lock:
                    held["stream"] = stream
                # Cancelled while the request was in flight
                if stop.is_set():
                    return
                for event in stream:
                    if stop.is_set():
                        return
                    text = event.get("contentBlockDelta", {}).get("delta", {}).get("text")
                    if text:
                        emit(_CHUNK, text)
                emit(_END, None)
            except (BotoCoreError, ClientError) as e:
                if not stop.is_set():
                    emit(_ERROR, ProviderError(f"Bedrock error: {e}", provider="BEDROCK"))
            except Exception as e:
                # Closing the stream from the loop side breaks the blocked read
                if stop.is_set():
                    self.logger.debug(f"Bedrock stream closed: {e}")
                    return
                self.logger.error(f"Unexpected Bedrock error: {e}")
                emit(_ERROR, ProviderError(f"Unexpected Bedrock error: {e}", provider="BEDROCK"))
            finally:
                release()

        worker = loop.run_in_executor(None, pump)

        try:
            while True:
                kind, payload = await queue.get()
                if kind == _CHUNK:
                    yield payload
                elif kind == _END:
                    break
                else:
                    raise payload
        finally:
            stop.set()
            release()
            done, _ = await asyncio.wait({worker}, timeout=_DRAIN_TIMEOUT)
            if not done:
                self.logger.warning("Bedrock worker still running after the stream was closed")
