"""
Domain errors for sessions, turns, and persistence.

Services raise these; routes translate them to HTTP responses.
Generation failures are deliberately absent: the component generator
absorbs them into fallback components and never raises.
"""

from __future__ import annotations


class StudioError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SessionNotFoundError(StudioError):
    """Session does not exist or belongs to another principal."""


class InvalidInputError(StudioError):
    """Request is well-formed but cannot be applied to the session."""


class EmptyTurnError(InvalidInputError):
    """A turn with neither text nor image."""


class HistoryIndexError(InvalidInputError):
    """Revert index outside the component history."""


class NoComponentError(InvalidInputError):
    """Operation needs a current component and the session has none."""


class ImageInputError(InvalidInputError):
    """Image payload is undecodable, too large, or not an image."""

    def __init__(self, message: str, status_code: int = 422):
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(StudioError):
    """Storage read or write failed. Fatal for the current request."""
