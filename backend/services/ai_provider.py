"""AI provider abstraction for OpenAI-compatible and Anthropic chat models."""

from __future__ import annotations

import logging
import time
from typing import Any

import anthropic
import openai

from backend.config import settings

logger = logging.getLogger(__name__)


class AIProvider:
    """Unified interface for chat-completion backends (OpenAI/OpenRouter, Anthropic)."""

    def __init__(self) -> None:
        """Initialize AI clients with API keys from settings."""
        default_headers: dict[str, str] | None = None
        if settings.OPENROUTER_API_KEY:
            default_headers = {
                "HTTP-Referer": settings.OPENROUTER_REFERER,
                "X-Title": settings.OPENROUTER_TITLE,
            }
        # One request per turn: SDK-level retries are disabled
        self.openai_client = openai.AsyncOpenAI(
            api_key=settings.AI_API_KEY,
            base_url=settings.AI_BASE_URL,
            default_headers=default_headers,
            max_retries=0,
        )
        self.anthropic_client = anthropic.AsyncAnthropic(
            api_key=settings.ANTHROPIC_API_KEY,
            max_retries=0,
        )

    async def complete(
        self,
        system: str,
        messages: list[dict[str, Any]],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> dict[str, Any]:
        """
        Run one chat completion on the configured backend.

        Args:
            system: System prompt
            messages: List of message dicts with "role" and "content"
            max_tokens: Output bound, defaults to settings.AI_MAX_TOKENS
            temperature: Sampling temperature, defaults to settings.AI_TEMPERATURE

        Returns:
            Dict with "content" (text) and "usage" (token counts)
        """
        max_tokens = max_tokens or settings.AI_MAX_TOKENS
        temperature = settings.AI_TEMPERATURE if temperature is None else temperature

        if settings.AI_PROVIDER == "anthropic":
            return await self.call_claude(settings.AI_MODEL, system, messages, max_tokens, temperature)
        return await self.call_gpt(settings.AI_MODEL, system, messages, max_tokens, temperature)

    async def call_claude(
        self,
        model: str,
        system: str,
        messages: list[dict[str, Any]],
        max_tokens: int = 2000,
        temperature: float = 0.7,
    ) -> dict[str, Any]:
        """
        Call Claude API with streaming and timing telemetry.

        Args:
            model: Model name (e.g., "claude-sonnet-4-20250514")
            system: System prompt
            messages: List of message dicts with "role" and "content"
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            Dict with:
            - content: Generated text
            - usage: Token counts (input_tokens, output_tokens)
            - timing: Timing telemetry (ttft_ms, total_ms)

        Raises:
            anthropic.APIError: On any remote failure
        """
        # Messages API wants the conversation to open with a user turn
        trimmed = list(messages)
        while trimmed and trimmed[0]["role"] != "user":
            trimmed.pop(0)

        request_sent_at = time.perf_counter()
        first_token_at: float | None = None
        content_text = ""
        input_tokens = 0
        output_tokens = 0

        async with self.anthropic_client.messages.stream(
            model=model,
            system=system,
            messages=trimmed,
            max_tokens=max_tokens,
            temperature=temperature,
        ) as stream:
            async for event in stream:
                if event.type == "content_block_delta":
                    if first_token_at is None:
                        first_token_at = time.perf_counter()
                    if hasattr(event.delta, "text"):
                        content_text += event.delta.text
                elif event.type == "message_delta":
                    if hasattr(event.usage, "output_tokens"):
                        output_tokens = event.usage.output_tokens
                elif event.type == "message_start":
                    if hasattr(event.message, "usage"):
                        input_tokens = event.message.usage.input_tokens

        last_token_at = time.perf_counter()
        total_ms = int((last_token_at - request_sent_at) * 1000)
        ttft_ms = int((first_token_at - request_sent_at) * 1000) if first_token_at else total_ms
        logger.info("Claude %s: TTFT=%dms total=%dms", model, ttft_ms, total_ms)

        return {
            "content": content_text,
            "usage": {
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
            },
            "timing": {
                "ttft_ms": ttft_ms,
                "total_ms": total_ms,
            },
        }

    async def call_gpt(
        self,
        model: str,
        system: str,
        messages: list[dict[str, Any]],
        max_tokens: int = 2000,
        temperature: float = 0.7,
    ) -> dict[str, Any]:
        """
        Call an OpenAI-compatible chat completions endpoint.

        Args:
            model: Model name (e.g., "gpt-4o-mini", "openai/gpt-4o-mini" on OpenRouter)
            system: System prompt
            messages: List of message dicts with "role" and "content"
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            Dict with "content" (text) and "usage" (token counts)

        Raises:
            openai.APIError: On any remote failure
        """
        # Prepend system message
        full_messages = [{"role": "system", "content": system}] + messages

        response = await self.openai_client.chat.completions.create(
            model=model,
            messages=full_messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )

        usage = response.usage
        return {
            "content": response.choices[0].message.content or "",
            "usage": {
                "input_tokens": usage.prompt_tokens if usage else 0,
                "output_tokens": usage.completion_tokens if usage else 0,
            },
        }


# Singleton instance
ai_provider = AIProvider()
