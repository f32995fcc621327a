"""Disposable async stream of response fragments."""

import logging
from typing import AsyncIterator

from ..models.turn import Fragment

logger = logging.getLogger(__name__)


class FragmentStream:
    """
    Async iterator over one turn's fragments.

    Iteration ends normally on completion and raises on error. dispose()
    stops delivery and closes the underlying generator; it may be called
    any number of times and never raises.

    GOTCHA: dispose() must not run while another task is inside __anext__;
    cancel that task first.
    """

    def __init__(self, source: AsyncIterator[Fragment]):
        """
        Initialize stream.

        Args:
            source: Async generator producing fragments
        """
        self._source = source
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __aiter__(self) -> "FragmentStream":
        return self

    async def __anext__(self) -> Fragment:
        if self._disposed:
            raise StopAsyncIteration
        return await self._source.__anext__()

    async def dispose(self) -> None:
        """Stop delivery and release the producer. Idempotent."""
        if self._disposed:
            return
        self._disposed = True

        aclose = getattr(self._source, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception as e:
            logger.debug(f"Ignoring error while disposing stream: {e}")
