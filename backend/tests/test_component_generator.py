"""
Tests for the component generator: prompt assembly, reply parsing, and fallbacks.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import httpx
import openai
import pytest

from backend.models.session import Component, Message
from backend.services.component_generator import (
    FallbackComponent,
    ParsedComponent,
    component_generator,
    parse_component_response,
)


class TestParseComponentResponse:
    def test_fenced_json_block(self):
        text = 'Here you go:\n```json\n{"jsx": "export default function A(){}", "css": ".a{}"}\n```\nEnjoy!'

        result = parse_component_response(text)

        assert result == ParsedComponent(jsx="export default function A(){}", css=".a{}")

    def test_untagged_fence(self):
        text = '```\n{"jsx": "J", "css": "C"}\n```'

        assert parse_component_response(text) == ParsedComponent(jsx="J", css="C")

    def test_fenced_object_with_nested_braces(self):
        payload = {"jsx": "export default function A(){ return <div style={{color: 'red'}} />; }", "css": ""}
        text = f"```json\n{json.dumps(payload)}\n```"

        result = parse_component_response(text)

        assert isinstance(result, ParsedComponent)
        assert result.jsx == payload["jsx"]

    def test_whole_text_json(self):
        text = '  {"jsx": "J", "css": "C"}  '

        assert parse_component_response(text) == ParsedComponent(jsx="J", css="C")

    def test_missing_fields_default_to_empty(self):
        assert parse_component_response('{"jsx": "J"}') == ParsedComponent(jsx="J", css="")
        assert parse_component_response("{}") == ParsedComponent(jsx="", css="")

    def test_non_string_fields_default_to_empty(self):
        assert parse_component_response('{"jsx": 42, "css": null}') == ParsedComponent(jsx="", css="")

    def test_malformed_text_falls_back(self):
        result = parse_component_response("Sure! Here is a button component.")

        assert isinstance(result, FallbackComponent)
        assert result.reason == "parse_error"
        assert result.css == ""
        assert "AI Response Parse Error" in result.jsx
        assert "Here is a button component." in result.jsx

    def test_non_object_json_falls_back(self):
        assert isinstance(parse_component_response("[1, 2, 3]"), FallbackComponent)
        assert isinstance(parse_component_response('"just a string"'), FallbackComponent)

    def test_fallback_truncates_raw_text(self):
        raw = "x" * 2000

        result = parse_component_response(raw)

        assert "x" * 500 + "..." in result.jsx
        assert "x" * 501 not in result.jsx

    def test_fallback_escapes_hostile_text(self):
        raw = "}</pre><script>alert(1)</script>{`"

        result = parse_component_response(raw)

        # Embedded as a JSON string literal inside a JSX expression
        assert json.dumps(raw + "...") in result.jsx


class TestGenerate:
    async def test_valid_reply_becomes_component(self):
        with patch("backend.services.component_generator.ai_provider") as provider:
            provider.complete = AsyncMock(return_value={"content": '{"jsx": "J", "css": "C"}'})

            component = await component_generator.generate("Make a red button")

        assert isinstance(component, Component)
        assert component.jsx == "J"
        assert component.css == "C"

    async def test_network_error_becomes_service_error_component(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        with patch("backend.services.component_generator.ai_provider") as provider:
            provider.complete = AsyncMock(side_effect=openai.APIConnectionError(request=request))

            component = await component_generator.generate("Make a red button")

        assert "AI Service Error" in component.jsx
        assert "Connection error" in component.jsx
        assert component.css == ""

    async def test_unexpected_error_never_escapes(self):
        with patch("backend.services.component_generator.ai_provider") as provider:
            provider.complete = AsyncMock(side_effect=KeyError("choices"))

            component = await component_generator.generate("anything")

        assert "AI Service Error" in component.jsx

    async def test_unparseable_reply_becomes_parse_error_component(self):
        with patch("backend.services.component_generator.ai_provider") as provider:
            provider.complete = AsyncMock(return_value={"content": "I cannot do that."})

            component = await component_generator.generate("anything")

        assert "AI Response Parse Error" in component.jsx
        assert component.css == ""

    async def test_fresh_generation_prompt(self):
        with patch("backend.services.component_generator.ai_provider") as provider:
            provider.complete = AsyncMock(return_value={"content": "{}"})

            await component_generator.generate("a login form", None, [])

        kwargs = provider.complete.call_args.kwargs
        assert "jsx" in kwargs["system"] and "css" in kwargs["system"]
        assert kwargs["messages"] == [{"role": "user", "content": "Generate a React component: a login form"}]

    async def test_refinement_prompt_embeds_current_component(self):
        current = Component(jsx="export default function B(){}", css=".b{}")
        with patch("backend.services.component_generator.ai_provider") as provider:
            provider.complete = AsyncMock(return_value={"content": "{}"})

            await component_generator.refine_component(current, "make it blue")

        last = provider.complete.call_args.kwargs["messages"][-1]
        assert last["role"] == "user"
        assert json.dumps({"jsx": current.jsx, "css": current.css}) in last["content"]
        assert "User request: make it blue" in last["content"]
        assert "modify the existing component" in last["content"]

    async def test_forwards_last_five_messages_without_images(self):
        recent = [
            Message(role="user" if i % 2 == 0 else "assistant", content=f"m{i}", image="data:image/png;base64,AA")
            for i in range(10)
        ]
        with patch("backend.services.component_generator.ai_provider") as provider:
            provider.complete = AsyncMock(return_value={"content": "{}"})

            await component_generator.generate("next", None, recent)

        messages = provider.complete.call_args.kwargs["messages"]
        assert len(messages) == 6
        assert [m["content"] for m in messages[:5]] == ["m5", "m6", "m7", "m8", "m9"]
        assert all(set(m) == {"role", "content"} for m in messages)
        assert messages[-1]["content"] == "Generate a React component: next"


@pytest.mark.parametrize(
    "reply",
    ['{"jsx": "J", "css": "C"}', "not json at all", "```json\n{broken\n```", ""],
)
async def test_generate_always_returns_both_fields(reply):
    with patch("backend.services.component_generator.ai_provider") as provider:
        provider.complete = AsyncMock(return_value={"content": reply})

        component = await component_generator.generate("x")

    assert isinstance(component.jsx, str)
    assert isinstance(component.css, str)
