"""Typed containers shared across the message relay pipeline.

These dataclasses live in their own module so the audio stages, the
responder and the webhook controller can import them without creating
circular dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .trace import PipelineTrace


@dataclass(frozen=True)
class IncomingMessage:
    """Normalized inbound chat message."""

    sender: str
    body: str = ""
    media_url: Optional[str] = None
    media_content_type: Optional[str] = None

    @property
    def has_media(self) -> bool:
        return bool(self.media_url and self.media_url.strip())


class ReplyOutcome(str, Enum):
    REPLIED = "replied"
    AUDIO_FAILED = "audio_failed"
    KEY_UNAVAILABLE = "key_unavailable"


@dataclass(frozen=True)
class RelayReply:
    """Terminal result handed back to the transport adapter."""

    text: str
    outcome: ReplyOutcome = ReplyOutcome.REPLIED
    trace: PipelineTrace = field(default_factory=PipelineTrace, compare=False)

    @property
    def succeeded(self) -> bool:
        return self.outcome is ReplyOutcome.REPLIED


__all__ = ["IncomingMessage", "RelayReply", "ReplyOutcome"]
