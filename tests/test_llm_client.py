"""Completion client request shape and fallback texts."""

from __future__ import annotations

import json

import httpx
import pytest

from chatrelay.services.llm_client import (
    ERROR_PREFIX,
    NO_PROMPT_TEXT,
    NO_RESPONSE_TEXT,
    CompletionClient,
)
from chatrelay.utils.clock import Deadline
from conftest import FakeClock, RecordingTransport, completion_reply


@pytest.mark.asyncio
async def test_successful_completion_returns_first_choice():
    transport = RecordingTransport(lambda request: completion_reply("Hi there"))

    reply = await CompletionClient(transport=transport).complete("Hello", "sk-test")

    assert reply == "Hi there"
    request = transport.requests[0]
    assert str(request.url) == "https://api.openai.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    payload = json.loads(request.content)
    assert payload["model"] == "gpt-3.5-turbo"
    assert payload["temperature"] == 0.7
    assert payload["messages"] == [
        {"role": "system", "content": "You are ChatGPT."},
        {"role": "user", "content": "Hello"},
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
async def test_blank_prompt_never_reaches_the_service(prompt):
    transport = RecordingTransport(lambda request: completion_reply("unused"))

    exchange = await CompletionClient(transport=transport).exchange(prompt, "sk-test")

    assert exchange.reply == NO_PROMPT_TEXT
    assert exchange.degraded
    assert transport.calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"choices": []},
        {},
        {"choices": [{"message": {"role": "assistant", "content": None}}]},
        {"choices": [{"message": {"role": "assistant", "content": "  "}}]},
    ],
)
async def test_missing_content_yields_the_no_response_text(body):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))

    reply = await CompletionClient(transport=transport).complete("Hello", "sk-test")

    assert reply == NO_RESPONSE_TEXT


@pytest.mark.asyncio
async def test_http_errors_become_error_text_with_detail():
    transport = httpx.MockTransport(lambda request: httpx.Response(429, json={"error": "rate limited"}))

    exchange = await CompletionClient(transport=transport).exchange("Hello", "sk-test")

    assert exchange.degraded
    assert exchange.reply.startswith(f"{ERROR_PREFIX}: ")
    assert "429" in exchange.reply


@pytest.mark.asyncio
async def test_network_errors_become_error_text():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out connecting", request=request)

    reply = await CompletionClient(transport=httpx.MockTransport(handler)).complete("Hello", "sk-test")

    assert reply == f"{ERROR_PREFIX}: timed out connecting"


@pytest.mark.asyncio
async def test_non_json_bodies_become_error_text():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>oops</html>"))

    reply = await CompletionClient(transport=transport).complete("Hello", "sk-test")

    assert reply.startswith(ERROR_PREFIX)


@pytest.mark.asyncio
async def test_spent_deadline_skips_the_call(fake_clock: FakeClock):
    transport = RecordingTransport(lambda request: completion_reply("unused"))
    deadline = Deadline(fake_clock, 0)

    reply = await CompletionClient(transport=transport).complete("Hello", "sk-test", deadline=deadline)

    assert reply == f"{ERROR_PREFIX}: deadline exceeded"
    assert transport.calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "handler",
    [
        lambda request: completion_reply("fine"),
        lambda request: httpx.Response(500),
        lambda request: httpx.Response(200, json={"choices": []}),
        lambda request: httpx.Response(200, content=b"not json"),
    ],
)
async def test_reply_is_never_empty(handler):
    reply = await CompletionClient(transport=httpx.MockTransport(handler)).complete("Hello", "sk-test")

    assert reply.strip()
