"""Main orchestrator. Coordinates the session store, the generator, and revision transitions."""

from __future__ import annotations

import logging
from uuid import UUID

from backend.config import settings
from backend.errors import SessionNotFoundError
from backend.models.session import Component, Message, Session
from backend.repos.session_repo import SessionRepo
from backend.services import revisions
from backend.services.component_generator import component_generator

logger = logging.getLogger(__name__)

session_repo = SessionRepo()


class Orchestrator:
    """Runs chat turns and reverts as whole-session read-modify-write units."""

    async def _load(self, owner_id: UUID, session_id: UUID, touch: bool = True) -> Session:
        session = await session_repo.get(owner_id, session_id, touch=touch)
        if not session:
            raise SessionNotFoundError("Session not found.")
        return session

    async def _persist(self, owner_id: UUID, session: Session) -> Session:
        saved = await session_repo.save(owner_id, session)
        if not saved:
            # Deleted between load and save
            raise SessionNotFoundError("Session not found.")
        return saved

    async def process_turn(
        self,
        owner_id: UUID,
        session_id: UUID,
        text: str,
        image: str | None = None,
    ) -> tuple[Message, Component]:
        """
        Process one chat turn and persist the new component version.

        Args:
            owner_id: Owner UUID
            session_id: Session UUID
            text: User message text
            image: Optional validated image as a data URI

        Returns:
            (assistant message, new current component)

        Raises:
            EmptyTurnError: No text and no image
            SessionNotFoundError: Session missing or owned by someone else
            PersistenceError: Storage failed; nothing of the turn is saved
        """
        revisions.validate_turn(text, image)
        # No touch on load: save() bumps last_accessed, a failed turn leaves the row alone
        session = await self._load(owner_id, session_id, touch=False)

        # 1. Record the user message
        revisions.append_user_message(session, text, image)

        # 2. Refinement iff a component already exists
        refinement = revisions.is_refinement(session)
        previous = session.current_component if refinement else None

        # 3. Generate (never raises; degrades to a fallback component)
        recent = session.messages[-settings.HISTORY_CONTEXT_MESSAGES :]
        generated = await component_generator.generate(text, previous, recent)

        # 4-6. Archive, install, reply
        reply = revisions.complete_turn(session, text, generated, refinement)

        # 7. One write for the whole turn
        saved = await self._persist(owner_id, session)
        logger.info(
            "Turn on session %s: refinement=%s history=%d messages=%d",
            session_id,
            refinement,
            len(saved.component_history),
            len(saved.messages),
        )
        return reply, saved.current_component

    async def revert(self, owner_id: UUID, session_id: UUID, history_index: int) -> tuple[Message, Component]:
        """
        Restore a historical component version.

        Args:
            owner_id: Owner UUID
            session_id: Session UUID
            history_index: Index into the session's component history

        Returns:
            (assistant message, restored component)

        Raises:
            SessionNotFoundError: Session missing or owned by someone else
            HistoryIndexError: Index out of range; nothing is written
            PersistenceError: Storage failed
        """
        session = await self._load(owner_id, session_id, touch=False)
        message, _ = revisions.revert_to(session, history_index)
        saved = await self._persist(owner_id, session)
        logger.info("Reverted session %s to history[%d]", session_id, history_index)
        return message, saved.current_component

    async def history(self, owner_id: UUID, session_id: UUID) -> list[Component]:
        """All component versions for a session, newest first."""
        session = await self._load(owner_id, session_id)
        return revisions.list_history(session)


# Singleton instance
orchestrator = Orchestrator()
