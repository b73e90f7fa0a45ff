"""Principal model for authentication and authorization."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel


class User(BaseModel):
    """
    Authenticated principal resolved from a session token.

    Accounts live in the external identity service; this service only
    needs the owner reference that scopes sessions.
    """

    id: UUID
