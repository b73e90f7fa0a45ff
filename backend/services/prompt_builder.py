"""
Prompt builder for component generation.

Assembles the system prompt and the chat messages array sent to the model.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from backend.config import settings
from backend.models.session import Component, Message

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

# Cache loaded prompts in memory (they don't change at runtime)
_cache: dict[str, str] = {}


def _load(name: str) -> str:
    """Load and cache a prompt file."""
    if name not in _cache:
        path = PROMPTS_DIR / f"{name}.md"
        _cache[name] = path.read_text()
    return _cache[name]


def build_system_prompt() -> str:
    """System instruction constraining the model to a {jsx, css} JSON object."""
    return _load("component_system").strip()


def build_request_content(prompt: str, previous: Component | None) -> str:
    """
    Build the final user entry for a generation request.

    Args:
        prompt: The user's request text
        previous: Current component when refining, None for a fresh generation

    Returns:
        User message content
    """
    if previous is not None:
        code = json.dumps({"jsx": previous.jsx, "css": previous.css})
        return (
            f"Current component code: {code}\n\n"
            f"User request: {prompt}\n\n"
            "Please modify the existing component based on the user's request."
        )
    return f"Generate a React component: {prompt}"


def build_messages(
    prompt: str,
    previous: Component | None,
    recent_messages: Sequence[Message],
    tail_size: int | None = None,
) -> list[dict[str, Any]]:
    """
    Build messages array for the API call.

    The conversation tail keeps its original order and is reduced to
    role and content; images never reach the model. Exactly one user
    entry carrying the request is appended last.

    Args:
        prompt: The user's request text
        previous: Current component when refining, None otherwise
        recent_messages: Recent session messages, oldest first
        tail_size: Number of recent messages to include

    Returns:
        Messages array without the system prompt
    """
    if tail_size is None:
        tail_size = settings.PROMPT_CONTEXT_MESSAGES

    tail = list(recent_messages)[-tail_size:] if tail_size > 0 else []
    messages: list[dict[str, Any]] = [{"role": m.role, "content": m.content} for m in tail]
    messages.append({"role": "user", "content": build_request_content(prompt, previous)})
    return messages
