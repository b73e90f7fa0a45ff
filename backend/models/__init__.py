"""
Pydantic models for Component Studio.

All data shapes defined here. No imports from db, repos, or routes.
"""

from backend.models.session import (
    Component,
    CreateSessionRequest,
    Message,
    RenameSessionRequest,
    RevertResponse,
    SendMessageRequest,
    Session,
    SessionResponse,
    SessionSummary,
    TurnResponse,
)
from backend.models.user import User

__all__ = [
    # Principal
    "User",
    # Session models
    "Message",
    "Component",
    "Session",
    "SessionSummary",
    "SessionResponse",
    "CreateSessionRequest",
    "RenameSessionRequest",
    "SendMessageRequest",
    "TurnResponse",
    "RevertResponse",
]
