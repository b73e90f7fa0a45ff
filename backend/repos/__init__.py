"""
Repository layer for Component Studio.

All SQL lives here and ONLY here. No database access outside this module.
"""

from backend.repos.session_repo import SessionRepo

__all__ = [
    "SessionRepo",
]
