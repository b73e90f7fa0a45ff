"""Session routes: CRUD, chat turns, component history, revert, preview, and export."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import HTMLResponse

from backend.auth import get_current_user
from backend.errors import ImageInputError, InvalidInputError, SessionNotFoundError, StudioError
from backend.models.session import (
    Component,
    CreateSessionRequest,
    RenameSessionRequest,
    RevertResponse,
    SendMessageRequest,
    Session,
    SessionResponse,
    SessionSummary,
    TurnResponse,
)
from backend.models.user import User
from backend.repos.session_repo import SessionRepo
from backend.services.exporter import build_component_zip, export_filename
from backend.services.orchestrator import orchestrator
from backend.services.preview import PREVIEW_CSP, render_placeholder_document, render_preview_document
from backend.services.revisions import validate_turn
from backend.utils.image_data import normalize_image

router = APIRouter(prefix="/api/sessions", tags=["sessions"])
session_repo = SessionRepo()


def _http_error(e: StudioError) -> HTTPException:
    """Translate a domain error into the HTTP response the client sees."""
    if isinstance(e, SessionNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, ImageInputError):
        return HTTPException(status_code=e.status_code, detail=e.message)
    if isinstance(e, InvalidInputError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)


async def _owned_session(user: User, session_id: UUID) -> Session:
    session = await session_repo.get(user.id, session_id)
    if not session:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found.")
    return session


@router.get("", status_code=200)
async def list_sessions(user: User = Depends(get_current_user)) -> list[SessionSummary]:
    """List the current user's sessions, most recently accessed first."""
    return await session_repo.list_summaries(user.id)


@router.post("", status_code=201)
async def create_session(
    req: CreateSessionRequest,
    user: User = Depends(get_current_user),
) -> SessionResponse:
    """Create an empty session."""
    session = await session_repo.create(user.id, req.name)
    return SessionResponse.from_model(session)


@router.get("/{session_id}", status_code=200)
async def get_session(
    session_id: UUID,
    user: User = Depends(get_current_user),
) -> SessionResponse:
    """Get a single session with messages and component history."""
    session = await _owned_session(user, session_id)
    return SessionResponse.from_model(session)


@router.patch("/{session_id}", status_code=200)
async def rename_session(
    session_id: UUID,
    req: RenameSessionRequest,
    user: User = Depends(get_current_user),
) -> dict[str, str]:
    """Rename a session."""
    session = await session_repo.rename(user.id, session_id, req.name)
    if not session:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found.")
    return {"id": str(session.id), "name": session.name}


@router.delete("/{session_id}", status_code=200)
async def delete_session(
    session_id: UUID,
    user: User = Depends(get_current_user),
) -> dict[str, str]:
    """Permanently delete a session with its messages and history."""
    deleted = await session_repo.delete(user.id, session_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found.")
    return {"message": "Session deleted."}


@router.post("/{session_id}/messages", status_code=200)
async def send_message(
    session_id: UUID,
    req: SendMessageRequest,
    user: User = Depends(get_current_user),
) -> TurnResponse:
    """
    Send a chat turn and generate or refine the session's component.

    Always answers with an assistant message and a renderable component,
    even when generation degrades to a fallback.
    """
    try:
        image = normalize_image(req.image) if req.image else None
        validate_turn(req.content, image)
        message, component = await orchestrator.process_turn(user.id, session_id, req.content, image)
    except (SessionNotFoundError, InvalidInputError) as e:
        raise _http_error(e) from e

    return TurnResponse(message=message, component=component, session_id=session_id)


@router.get("/{session_id}/history", status_code=200)
async def get_component_history(
    session_id: UUID,
    user: User = Depends(get_current_user),
) -> list[Component]:
    """All component versions, newest first."""
    try:
        return await orchestrator.history(user.id, session_id)
    except SessionNotFoundError as e:
        raise _http_error(e) from e


@router.post("/{session_id}/revert/{history_index}", status_code=200)
async def revert_component(
    session_id: UUID,
    history_index: int,
    user: User = Depends(get_current_user),
) -> RevertResponse:
    """Restore a previous component version."""
    try:
        message, component = await orchestrator.revert(user.id, session_id, history_index)
    except (SessionNotFoundError, InvalidInputError) as e:
        raise _http_error(e) from e

    return RevertResponse(message=message, component=component, session_id=session_id)


@router.get("/{session_id}/preview", status_code=200)
async def get_preview(
    session_id: UUID,
    user: User = Depends(get_current_user),
) -> HTMLResponse:
    """Sandboxed preview document for the current component."""
    session = await _owned_session(user, session_id)
    component = session.current_component

    if component.is_empty:
        html_content = render_placeholder_document()
    else:
        html_content = render_preview_document(component.jsx, component.css, title=session.name)

    return HTMLResponse(
        content=html_content,
        headers={
            "Content-Security-Policy": PREVIEW_CSP,
            "X-Content-Type-Options": "nosniff",
        },
    )


@router.get("/{session_id}/export", status_code=200)
async def export_component(
    session_id: UUID,
    user: User = Depends(get_current_user),
) -> Response:
    """Download the current component as a zip."""
    session = await _owned_session(user, session_id)
    try:
        archive = build_component_zip(session.current_component)
    except InvalidInputError as e:
        raise _http_error(e) from e

    filename = export_filename(session.name)
    return Response(
        content=archive,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
