"""In-memory artifact service for turn attachments."""

import logging
from typing import Dict, List, Optional, Tuple

from ..models.turn import Attachment

logger = logging.getLogger(__name__)


class InMemoryArtifactService:
    """Keeps binary artifacts per session. Re-saving a name replaces it."""

    def __init__(self) -> None:
        self._artifacts: Dict[Tuple[str, str], Attachment] = {}

    def save(self, session_id: str, attachment: Attachment) -> str:
        """
        Store an attachment.

        Returns:
            Artifact name
        """
        self._artifacts[(session_id, attachment.name)] = attachment
        logger.debug(f"Saved artifact {attachment.name} ({len(attachment.data)} bytes)")
        return attachment.name

    def load(self, session_id: str, name: str) -> Optional[Attachment]:
        """Load an attachment by name."""
        return self._artifacts.get((session_id, name))

    def list_names(self, session_id: str) -> List[str]:
        """List artifact names saved for a session."""
        return sorted(name for sid, name in self._artifacts if sid == session_id)
