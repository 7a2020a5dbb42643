"""Thin chat completion client for relaying user prompts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from pydantic import ValidationError

from chatrelay.services.response_contract import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
)
from chatrelay.utils.clock import Deadline, DeadlineExceeded

logger = logging.getLogger(__name__)

NO_PROMPT_TEXT = "No prompt provided."
NO_RESPONSE_TEXT = "No response from the completion service."
ERROR_PREFIX = "Error calling completion service"


def _truncate(value: str, max_length: int = 500) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."


@dataclass(frozen=True)
class ChatExchange:
    """Prompt sent and reply obtained; ``degraded`` marks substituted text."""

    prompt: str
    reply: str
    degraded: bool = False


class CompletionClient:
    """Send a prompt to an OpenAI-compatible chat completion endpoint."""

    def __init__(
        self,
        *,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-3.5-turbo",
        temperature: float = 0.7,
        system_prompt: str = "You are ChatGPT.",
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self._model = model
        self._temperature = temperature
        self._system_prompt = system_prompt
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def _build_request(self, prompt: str) -> ChatCompletionRequest:
        return ChatCompletionRequest(
            model=self._model,
            messages=[
                ChatMessage(role="system", content=self._system_prompt),
                ChatMessage(role="user", content=prompt),
            ],
            temperature=self._temperature,
        )

    async def exchange(
        self,
        prompt: str,
        api_key: str,
        *,
        deadline: Deadline | None = None,
    ) -> ChatExchange:
        """Run one prompt/reply round trip. Never raises for upstream failures."""

        if not prompt or not prompt.strip():
            return ChatExchange(prompt=prompt or "", reply=NO_PROMPT_TEXT, degraded=True)

        payload = self._build_request(prompt).model_dump()
        logger.info("Completion request model=%s prompt=%s", self._model, _truncate(prompt, 200))

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=deadline.bound(self._timeout_seconds) if deadline else self._timeout_seconds,
            ) as client:
                request = client.post(
                    self._endpoint,
                    json=payload,
                    headers={"Authorization": f"Bearer {api_key}"},
                )
                response = await (deadline.run(request) if deadline else request)
            logger.info("Completion response status=%s", response.status_code)
            response.raise_for_status()
            parsed = ChatCompletionResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError, DeadlineExceeded) as exc:
            detail = str(exc) or exc.__class__.__name__
            logger.error("Completion call failed: %s", detail)
            return ChatExchange(prompt=prompt, reply=f"{ERROR_PREFIX}: {detail}", degraded=True)

        text = parsed.first_text()
        if not text or not text.strip():
            logger.warning("Completion service returned no usable choice")
            return ChatExchange(prompt=prompt, reply=NO_RESPONSE_TEXT, degraded=True)

        logger.debug("Completion reply: %s", _truncate(text))
        return ChatExchange(prompt=prompt, reply=text)

    async def complete(self, prompt: str, api_key: str, **kwargs) -> str:
        return (await self.exchange(prompt, api_key, **kwargs)).reply


__all__ = [
    "ChatExchange",
    "CompletionClient",
    "ERROR_PREFIX",
    "NO_PROMPT_TEXT",
    "NO_RESPONSE_TEXT",
]
