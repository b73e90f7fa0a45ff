"""Session models: chat messages, component versions, and API shapes."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

DEFAULT_SESSION_NAME = "Untitled Session"


def utcnow() -> datetime:
    return datetime.now(UTC)


class Message(BaseModel):
    """A single chat message. Immutable once appended to a session."""

    model_config = {"frozen": True}

    role: Literal["user", "assistant"]
    content: str = ""
    image: str | None = None  # data:<mime>;base64,<payload>
    timestamp: datetime = Field(default_factory=utcnow)


class Component(BaseModel):
    """One generated or refined version of the session's component."""

    model_config = {"frozen": True}

    jsx: str = ""
    css: str = ""
    timestamp: datetime = Field(default_factory=utcnow)

    @property
    def is_empty(self) -> bool:
        """A component without JSX has never been generated."""
        return not self.jsx

    def restamped(self) -> Component:
        """Copy with a fresh timestamp, used when archiving or promoting."""
        return Component(jsx=self.jsx, css=self.css)


class Session(BaseModel):
    """
    Core session aggregate. Represents a row in the sessions table.

    component_history holds only superseded components, in the order
    they were displaced. It never contains the live component.
    """

    id: UUID
    owner_id: UUID
    name: str = DEFAULT_SESSION_NAME
    messages: list[Message] = Field(default_factory=list)
    current_component: Component = Field(default_factory=Component)
    component_history: list[Component] = Field(default_factory=list)
    created: datetime
    last_accessed: datetime


class SessionSummary(BaseModel):
    """List-view projection, computed from a Session at read time."""

    id: UUID
    name: str
    last_accessed: datetime
    created: datetime
    message_count: int
    has_component: bool

    @classmethod
    def from_model(cls, session: Session) -> SessionSummary:
        """Project a full session down to its list entry."""
        return cls(
            id=session.id,
            name=session.name,
            last_accessed=session.last_accessed,
            created=session.created,
            message_count=len(session.messages),
            has_component=not session.current_component.is_empty,
        )


class SessionResponse(BaseModel):
    """What the API returns for a single session. No owner reference."""

    id: UUID
    name: str
    messages: list[Message]
    current_component: Component
    component_history: list[Component]
    created: datetime
    last_accessed: datetime

    @classmethod
    def from_model(cls, session: Session) -> SessionResponse:
        """Convert internal Session model to public API response."""
        return cls(
            id=session.id,
            name=session.name,
            messages=session.messages,
            current_component=session.current_component,
            component_history=session.component_history,
            created=session.created,
            last_accessed=session.last_accessed,
        )


class CreateSessionRequest(BaseModel):
    """What the client sends to create a session."""

    model_config = {"extra": "forbid"}

    name: str | None = Field(default=None, max_length=200)


class RenameSessionRequest(BaseModel):
    """What the client sends to rename a session."""

    model_config = {"extra": "forbid"}

    name: str = Field(min_length=1, max_length=200)


class SendMessageRequest(BaseModel):
    """What the client sends to POST /api/sessions/{id}/messages."""

    model_config = {"extra": "forbid"}

    content: str = Field(default="", max_length=10000)
    image: str | None = None  # base64 or data URI


class TurnResponse(BaseModel):
    """What the message endpoint returns."""

    message: Message
    component: Component
    session_id: UUID


class RevertResponse(BaseModel):
    """What the revert endpoint returns."""

    message: Message
    component: Component
    session_id: UUID
