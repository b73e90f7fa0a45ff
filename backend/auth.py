"""
Authentication for Component Studio.

Accounts and sign-in live in the identity service. This module only
verifies the JWTs it issues and resolves the principal that owns sessions.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Cookie, Header, HTTPException, status

from backend import config
from backend.models.user import User


def create_jwt(user_id: UUID) -> str:
    """
    Create a JWT for a principal.

    Used by operators and tests; end-user tokens come from the identity service.

    Args:
        user_id: User UUID to encode in the token

    Returns:
        Signed JWT string
    """
    expires_at = datetime.now(UTC) + timedelta(hours=config.settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user_id),
        "exp": expires_at,
        "iat": datetime.now(UTC),
    }
    return jwt.encode(payload, config.settings.JWT_SECRET, algorithm=config.settings.JWT_ALGORITHM)


def decode_jwt(token: str) -> dict:
    """
    Decode and verify a JWT.

    Args:
        token: JWT string to decode

    Returns:
        Decoded payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = jwt.decode(token, config.settings.JWT_SECRET, algorithms=[config.settings.JWT_ALGORITHM])
        return payload
    except jwt.ExpiredSignatureError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired. Please sign in again.",
        ) from e
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token. Please sign in again.",
        ) from e


def user_from_token(token: str) -> User:
    """
    Resolve the principal carried by a token.

    Accepts the identity service's "sub" claim, or "id" from older tokens.

    Raises:
        HTTPException: If the token is invalid or carries no usable subject
    """
    payload = decode_jwt(token)
    subject = payload.get("sub") or payload.get("id")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token. Please sign in again.",
        )

    try:
        user_id = UUID(str(subject))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token. Please sign in again.",
        ) from e

    return User(id=user_id)


async def get_current_user(
    session: Annotated[str | None, Cookie()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """
    FastAPI dependency to get the current authenticated principal.

    Tries the Bearer token first (API clients), then the session cookie (browser).

    Args:
        session: JWT from HTTP-only session cookie
        authorization: Bearer token header

    Returns:
        Current authenticated User

    Raises:
        HTTPException: If authentication fails
    """
    if authorization and authorization.startswith("Bearer "):
        return user_from_token(authorization.removeprefix("Bearer ").strip())

    if session:
        return user_from_token(session)

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated. Please sign in.",
    )
