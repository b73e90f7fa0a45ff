"""
Component generator: turns a chat turn into a {jsx, css} component.

Builds the prompt, makes one chat-completion call, and parses the reply.
Never raises: unparseable replies and remote failures both degrade to a
deterministic fallback component that still renders in the preview.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from backend.models.session import Component, Message
from backend.services.ai_provider import ai_provider
from backend.services.prompt_builder import build_messages, build_system_prompt

logger = logging.getLogger(__name__)

RAW_PREVIEW_CHARS = 500

# A fenced block (optionally tagged json) wrapping one JSON object
_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")


@dataclass(frozen=True)
class ParsedComponent:
    """Reply parsed into a {jsx, css} object."""

    jsx: str
    css: str


@dataclass(frozen=True)
class FallbackComponent:
    """Synthesized component for a reply or call that could not be used."""

    jsx: str
    css: str
    reason: str


ParseResult = ParsedComponent | FallbackComponent


def _jsx_text(text: str) -> str:
    """Embed arbitrary text in JSX as a string-literal expression."""
    return "{" + json.dumps(text) + "}"


def parse_error_fallback(raw: str) -> FallbackComponent:
    """Component that shows the (truncated) unparseable reply."""
    preview = raw[:RAW_PREVIEW_CHARS] + "..."
    jsx = f"""export default function GeneratedComponent() {{
  return (
    <div className="p-4 bg-red-100 border border-red-400 rounded">
      <h2 className="text-red-800 font-bold">AI Response Parse Error</h2>
      <pre className="text-sm mt-2 text-red-700 whitespace-pre-wrap">{_jsx_text(preview)}</pre>
    </div>
  );
}}"""
    return FallbackComponent(jsx=jsx, css="", reason="parse_error")


def service_error_fallback(error: BaseException) -> FallbackComponent:
    """Component that reports a failed remote call."""
    detail = str(error) or type(error).__name__
    jsx = f"""export default function ErrorComponent() {{
  return (
    <div className="p-6 bg-red-50 border border-red-200 rounded-lg">
      <h2 className="text-red-800 font-bold mb-2">AI Service Error</h2>
      <p className="text-red-700">
        Sorry, there was an error generating your component. Please try again.
      </p>
      <details className="mt-2">
        <summary className="cursor-pointer text-red-600">Error Details</summary>
        <pre className="text-xs mt-1 text-red-500 whitespace-pre-wrap">{_jsx_text(detail)}</pre>
      </details>
    </div>
  );
}}"""
    return FallbackComponent(jsx=jsx, css="", reason="service_error")


def _field(obj: dict[str, Any], name: str) -> str:
    value = obj.get(name)
    return value if isinstance(value, str) else ""


def _try_object(candidate: str) -> dict[str, Any] | None:
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def parse_component_response(text: str) -> ParseResult:
    """
    Parse a model reply into a component.

    Order: a fenced block holding a JSON object, then the whole text as
    JSON, then a parse-error fallback. Missing or non-string jsx/css
    fields become empty strings.

    Args:
        text: Raw assistant message text

    Returns:
        ParsedComponent on success, FallbackComponent otherwise
    """
    obj: dict[str, Any] | None = None

    match = _FENCED_JSON.search(text)
    if match:
        obj = _try_object(match.group(1))
    if obj is None:
        obj = _try_object(text.strip())

    if obj is None:
        logger.warning("Failed to parse AI response as JSON, using fallback (%d chars)", len(text))
        return parse_error_fallback(text)

    return ParsedComponent(jsx=_field(obj, "jsx"), css=_field(obj, "css"))


class ComponentGenerator:
    """Generates and refines components through the configured AI backend."""

    async def generate(
        self,
        prompt: str,
        previous: Component | None = None,
        recent_messages: Sequence[Message] = (),
    ) -> Component:
        """
        Generate a component, or refine `previous` when given.

        Args:
            prompt: The user's request text
            previous: Current component when refining, None for fresh generation
            recent_messages: Recent session messages, oldest first

        Returns:
            Component (a fallback component on any failure)
        """
        try:
            system = build_system_prompt()
            messages = build_messages(prompt, previous, recent_messages)
            result = await ai_provider.complete(system=system, messages=messages)
            parsed = parse_component_response(result["content"])
        except Exception as e:
            logger.error("AI Service Error: %s", e)
            parsed = service_error_fallback(e)

        if isinstance(parsed, FallbackComponent):
            logger.info("Generation degraded to fallback (%s)", parsed.reason)

        return Component(jsx=parsed.jsx, css=parsed.css)

    async def refine_component(
        self,
        current: Component,
        prompt: str,
        recent_messages: Sequence[Message] = (),
    ) -> Component:
        """Refine an existing component. Same as generate() with `previous` set."""
        return await self.generate(prompt, current, recent_messages)


# Singleton instance
component_generator = ComponentGenerator()
