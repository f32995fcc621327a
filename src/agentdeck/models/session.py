"""Conversation session models."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class SessionEvent(BaseModel):
    """One recorded message in a session."""

    role: str = Field(description="Message role: user or assistant")
    text: str = Field(description="Message text")
    author: str = Field(default="", description="Agent name for assistant events")
    attachments: List[str] = Field(
        default_factory=list,
        description="Artifact names attached to a user event",
    )
    interrupted: bool = Field(default=False, description="Reply was cut short")
    timestamp: datetime = Field(default_factory=datetime.now)


class Session(BaseModel):
    """
    Conversation context held by a backend's session service.

    The controller treats ``session_id`` as opaque.
    """

    session_id: str = Field(description="Unique session identifier")
    app_id: str = Field(description="Application identifier")
    agent_name: str = Field(description="Primary agent for the session")
    created_at: datetime = Field(default_factory=datetime.now)
    events: List[SessionEvent] = Field(default_factory=list)
