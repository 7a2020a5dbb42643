"""Pydantic models for the chat completion wire format.

Only the fields the relay reads are declared; everything else in the
upstream payload is ignored.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatCompletionRequest(BaseModel):
    model: str
    messages: List[ChatMessage]
    temperature: float


class ChoiceMessage(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None

    model_config = {"extra": "ignore"}


class Choice(BaseModel):
    index: int = 0
    message: Optional[ChoiceMessage] = None

    model_config = {"extra": "ignore"}


class ChatCompletionResponse(BaseModel):
    choices: Optional[List[Choice]] = Field(default=None)

    model_config = {"extra": "ignore"}

    def first_text(self) -> str | None:
        """Return the first choice's content, or ``None`` when there is none."""

        if not self.choices:
            return None
        message = self.choices[0].message
        if message is None or not message.content:
            return None
        return message.content


__all__ = [
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatMessage",
    "Choice",
    "ChoiceMessage",
]
