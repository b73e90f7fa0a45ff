"""Repository for session operations."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from uuid import UUID, uuid4

import asyncpg

from backend.db import owner_conn
from backend.errors import PersistenceError
from backend.models.session import DEFAULT_SESSION_NAME, Component, Message, Session, SessionSummary

logger = logging.getLogger(__name__)


def _row_to_session(row: asyncpg.Record) -> Session:
    """Convert a database row to a Session model."""
    return Session(
        id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        messages=[Message.model_validate(m) for m in row["messages"]],
        current_component=Component.model_validate(row["current_component"]),
        component_history=[Component.model_validate(c) for c in row["component_history"]],
        created=row["created"],
        last_accessed=row["last_accessed"],
    )


def _row_to_summary(row: asyncpg.Record) -> SessionSummary:
    """Convert a summary projection row to a SessionSummary model."""
    return SessionSummary(
        id=row["id"],
        name=row["name"],
        last_accessed=row["last_accessed"],
        created=row["created"],
        message_count=row["message_count"],
        has_component=row["has_component"],
    )


@asynccontextmanager
async def _conn(owner_id: UUID):
    """owner_conn() with driver failures surfaced as PersistenceError."""
    try:
        async with owner_conn(owner_id) as conn:
            yield conn
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
        logger.error("Session store failure for owner %s: %s", owner_id, e)
        raise PersistenceError("Session storage is unavailable.") from e


class SessionRepo:
    """All session-related database operations."""

    async def create(self, owner_id: UUID, name: str | None = None) -> Session:
        """
        Create an empty session: no messages, empty current component.

        Args:
            owner_id: Owner UUID
            name: Optional display name, defaults to "Untitled Session"

        Returns:
            Newly created Session
        """
        session_id = uuid4()

        async with _conn(owner_id) as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO sessions (id, owner_id, name, messages, current_component, component_history)
                VALUES ($1, $2, $3, '[]'::jsonb, $4, '[]'::jsonb)
                RETURNING *
                """,
                session_id,
                owner_id,
                name or DEFAULT_SESSION_NAME,
                Component(),
            )
            return _row_to_session(row)

    async def get(self, owner_id: UUID, session_id: UUID, touch: bool = True) -> Session | None:
        """
        Get a session by ID, bumping last_accessed unless `touch` is False.

        Callers that go on to save() pass touch=False so a rejected
        operation leaves the row exactly as it was.

        Args:
            owner_id: Owner UUID
            session_id: Session UUID
            touch: Whether the read itself counts as an access

        Returns:
            Session if found and owned by the caller, None otherwise
        """
        query = (
            "UPDATE sessions SET last_accessed = now() WHERE id = $1 AND owner_id = $2 RETURNING *"
            if touch
            else "SELECT * FROM sessions WHERE id = $1 AND owner_id = $2"
        )
        async with _conn(owner_id) as conn:
            row = await conn.fetchrow(query, session_id, owner_id)
            return _row_to_session(row) if row else None

    async def list_summaries(self, owner_id: UUID) -> list[SessionSummary]:
        """
        List session summaries for an owner.

        Args:
            owner_id: Owner UUID

        Returns:
            List of SessionSummary ordered by last_accessed DESC
        """
        async with _conn(owner_id) as conn:
            rows = await conn.fetch(
                """
                SELECT id, name, last_accessed, created,
                       jsonb_array_length(messages) AS message_count,
                       coalesce(current_component->>'jsx', '') <> '' AS has_component
                FROM sessions
                WHERE owner_id = $1
                ORDER BY last_accessed DESC
                """,
                owner_id,
            )
            return [_row_to_summary(row) for row in rows]

    async def rename(self, owner_id: UUID, session_id: UUID, name: str) -> Session | None:
        """
        Rename a session.

        Args:
            owner_id: Owner UUID
            session_id: Session UUID
            name: New display name

        Returns:
            Updated Session if found and owned by the caller, None otherwise
        """
        async with _conn(owner_id) as conn:
            row = await conn.fetchrow(
                """
                UPDATE sessions
                SET name = $3, last_accessed = now()
                WHERE id = $1 AND owner_id = $2
                RETURNING *
                """,
                session_id,
                owner_id,
                name,
            )
            return _row_to_session(row) if row else None

    async def save(self, owner_id: UUID, session: Session) -> Session | None:
        """
        Write the whole session aggregate back in a single statement.

        Messages, current component, and history are always written
        together so a turn is never half-visible.

        Args:
            owner_id: Owner UUID
            session: Mutated Session to persist

        Returns:
            Persisted Session, or None if it vanished or is not owned by the caller
        """
        async with _conn(owner_id) as conn:
            row = await conn.fetchrow(
                """
                UPDATE sessions
                SET messages = $3,
                    current_component = $4,
                    component_history = $5,
                    last_accessed = now()
                WHERE id = $1 AND owner_id = $2
                RETURNING *
                """,
                session.id,
                owner_id,
                session.messages,
                session.current_component,
                session.component_history,
            )
            return _row_to_session(row) if row else None

    async def delete(self, owner_id: UUID, session_id: UUID) -> bool:
        """
        Delete a session. Messages and history live in the same row.

        Args:
            owner_id: Owner UUID
            session_id: Session UUID

        Returns:
            True if deleted, False if not found or not owned by the caller
        """
        async with _conn(owner_id) as conn:
            result = await conn.execute(
                "DELETE FROM sessions WHERE id = $1 AND owner_id = $2",
                session_id,
                owner_id,
            )
            return result == "DELETE 1"
