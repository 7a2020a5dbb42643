"""Turn an inbound chat message into exactly one reply.

Text messages go straight to the completion service; messages with an
attachment go through :class:`~chatrelay.pipelines.audio.AudioPipeline`.
Both paths need the completion API key, so it is resolved first and a
missing key short-circuits with its own fixed reply.
"""

from __future__ import annotations

import logging

from chatrelay.services.errors import ConfigurationError
from chatrelay.services.llm_client import CompletionClient
from chatrelay.services.secrets import CredentialCache
from chatrelay.telemetry import record_reply
from chatrelay.utils.clock import Clock, Deadline, SystemClock

from .audio import AudioPipeline, IncomingMessage, RelayReply, ReplyOutcome

logger = logging.getLogger(__name__)

KEY_UNAVAILABLE_TEXT = "Error: API key unavailable."


class MessageResponder:
    """Route a message down the text or audio path and assemble the reply."""

    def __init__(
        self,
        *,
        credentials: CredentialCache,
        completion: CompletionClient,
        audio_pipeline: AudioPipeline,
        completion_secret_id: str,
        completion_secret_field: str | None = None,
        invocation_budget_seconds: float | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._credentials = credentials
        self._completion = completion
        self._audio_pipeline = audio_pipeline
        self._completion_secret_id = completion_secret_id
        self._completion_secret_field = completion_secret_field
        self._budget = invocation_budget_seconds
        self._clock = clock or SystemClock()

    async def _resolve_api_key(self) -> str:
        secret = await self._credentials.aget(
            self._completion_secret_id,
            self._completion_secret_field,
        )
        if not secret.present or not secret.value.strip():
            raise ConfigurationError(
                f"Completion API key {self._completion_secret_id!r} is missing or empty."
            )
        return secret.value.strip()

    async def respond(
        self,
        message: IncomingMessage,
        deadline: Deadline | None = None,
    ) -> RelayReply:
        deadline = deadline or Deadline(self._clock, self._budget)
        logger.info(
            "Received message from %s media=%s body=%r",
            message.sender,
            message.has_media,
            message.body,
        )

        try:
            api_key = await self._resolve_api_key()
        except ConfigurationError as exc:
            logger.error("Failed to retrieve completion API key: %s", exc)
            reply = RelayReply(text=KEY_UNAVAILABLE_TEXT, outcome=ReplyOutcome.KEY_UNAVAILABLE)
        else:
            if message.has_media:
                reply = await self._audio_pipeline.run(message, api_key, deadline)
            else:
                reply = RelayReply(
                    text=await self._completion.complete(message.body, api_key, deadline=deadline)
                )

        record_reply(reply.outcome.value)
        return reply


__all__ = ["KEY_UNAVAILABLE_TEXT", "MessageResponder"]
