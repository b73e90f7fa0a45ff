"""
Revision state machine for a session's component.

Pure, in-memory transitions over a Session: archive the live component,
install a new one, promote a historical one, and list versions. No I/O;
the orchestrator loads a session, applies these, and persists the result.

Invariant: component_history holds only superseded components, in the
order they were displaced, and never shrinks.
"""

from __future__ import annotations

from backend.errors import EmptyTurnError, HistoryIndexError
from backend.models.session import Component, Message, Session

REVERT_MESSAGE = "Reverted to a previous component version."


def is_refinement(session: Session) -> bool:
    """True when the session already has a generated component."""
    return not session.current_component.is_empty


def validate_turn(user_text: str, image: str | None) -> None:
    """Reject a turn with no text and no image."""
    if not user_text.strip() and not image:
        raise EmptyTurnError("Message must include text or an image.")


def turn_reply(user_text: str, refinement: bool) -> str:
    """Assistant message text for a completed turn."""
    if refinement:
        return f'I\'ve updated your component based on your request: "{user_text}"'
    return f'I\'ve generated a React component for: "{user_text}"'


def archive_current(session: Session) -> None:
    """Push a fresh-stamped copy of a non-empty live component onto history."""
    if not session.current_component.is_empty:
        session.component_history.append(session.current_component.restamped())


def install_component(session: Session, component: Component) -> Component:
    """Make `component` the live one with a fresh timestamp."""
    session.current_component = component.restamped()
    return session.current_component


def append_user_message(session: Session, user_text: str, image: str | None = None) -> Message:
    """Step 1 of a turn: record what the user sent."""
    validate_turn(user_text, image)
    message = Message(role="user", content=user_text, image=image)
    session.messages.append(message)
    return message


def complete_turn(session: Session, user_text: str, generated: Component, refinement: bool) -> Message:
    """
    Steps 4-6 of a turn: archive, install, and reply.

    Archiving happens whether or not `generated` is a fallback, so the
    previous version is always recoverable.
    """
    archive_current(session)
    install_component(session, generated)
    reply = Message(role="assistant", content=turn_reply(user_text, refinement))
    session.messages.append(reply)
    return reply


def revert_to(session: Session, history_index: int) -> tuple[Message, Component]:
    """
    Promote a historical component to live.

    The chosen entry stays in history; the displaced live component is
    archived first.

    Args:
        session: Session to mutate
        history_index: Index into component_history as it was before the call

    Returns:
        (assistant message, restored component)

    Raises:
        HistoryIndexError: If the index is out of range. The session is untouched.
    """
    if not 0 <= history_index < len(session.component_history):
        raise HistoryIndexError("Invalid component index.")

    target = session.component_history[history_index]
    archive_current(session)
    restored = install_component(session, target)
    message = Message(role="assistant", content=REVERT_MESSAGE)
    session.messages.append(message)
    return message, restored


def list_history(session: Session) -> list[Component]:
    """All versions, newest first: history plus the live component if any."""
    versions = list(session.component_history)
    if not session.current_component.is_empty:
        versions.append(session.current_component)
    # Equal timestamps fall back to position, later entries first
    ranked = sorted(enumerate(versions), key=lambda pair: (pair[1].timestamp, pair[0]), reverse=True)
    return [component for _, component in ranked]
