"""Audio message pipeline: download, stage, upload, transcribe, complete.

Stages run strictly one after another. The first failing stage aborts the
rest; the staged file is always removed when the upload stage exits, whatever
happened. Every stage failure ends in the same fixed reply so no exception
text or stack trace reaches the end user; the trace goes to the pipeline log
instead (and to the reply only when ``echo_trace`` is enabled).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List

from chatrelay.services.errors import StageError
from chatrelay.services.llm_client import CompletionClient
from chatrelay.services.media import MediaFetcher
from chatrelay.services.secrets import MediaCredentials
from chatrelay.services.staging import ArtifactStager
from chatrelay.services.storage import ObjectUploader
from chatrelay.services.transcribe import TranscriptionOrchestrator
from chatrelay.telemetry import record_stage_failure
from chatrelay.utils.clock import Deadline, DeadlineExceeded

from .trace import PipelineTrace
from .types import IncomingMessage, RelayReply, ReplyOutcome

logger = logging.getLogger("chatrelay.services.audio_pipeline")
transcript_logger = logging.getLogger("chatrelay.logs.transcript")

AUDIO_FAILURE_TEXT = "Sorry, we could not process your audio message."


@dataclass(frozen=True)
class PipelineStage:
    """Human-readable description of one stage in the audio pipeline."""

    order: int
    name: str
    module: str
    summary: str


_STAGES: List[PipelineStage] = [
    PipelineStage(
        1,
        "fetch",
        "chatrelay.services.media",
        "Download the attachment from the media host with Basic auth.",
    ),
    PipelineStage(
        2,
        "stage",
        "chatrelay.services.staging",
        "Write the bytes to a scoped temporary file.",
    ),
    PipelineStage(
        3,
        "upload",
        "chatrelay.services.storage",
        "Copy the staged file to S3 under a unique key.",
    ),
    PipelineStage(
        4,
        "transcribe",
        "chatrelay.services.transcribe",
        "Run an Amazon Transcribe job and poll it to a terminal state.",
    ),
    PipelineStage(
        5,
        "complete",
        "chatrelay.services.llm_client",
        "Send the transcript to the completion service.",
    ),
]


class AudioPipeline:
    """Composition root for the audio path."""

    def __init__(
        self,
        *,
        credentials: MediaCredentials,
        fetcher: MediaFetcher,
        stager: ArtifactStager,
        uploader: ObjectUploader,
        orchestrator: TranscriptionOrchestrator,
        completion: CompletionClient,
        echo_trace: bool = False,
    ) -> None:
        self._credentials = credentials
        self._fetcher = fetcher
        self._stager = stager
        self._uploader = uploader
        self._orchestrator = orchestrator
        self._completion = completion
        self._echo_trace = echo_trace

    @staticmethod
    def describe() -> Iterable[PipelineStage]:
        """Expose the ordered list of stages for debugging and documentation."""

        return tuple(_STAGES)

    async def run(
        self,
        message: IncomingMessage,
        api_key: str,
        deadline: Deadline | None = None,
    ) -> RelayReply:
        deadline = deadline or Deadline.unbounded()
        trace = PipelineTrace()
        trace.info("receive", f"sender={message.sender} content_type={message.media_content_type or '-'}")

        try:
            transcript = await self._transcribe_message(message, trace, deadline)
            transcript_logger.info("sender=%s | text=%s", message.sender, transcript)

            exchange = await self._completion.exchange(transcript, api_key, deadline=deadline)
            if exchange.degraded:
                trace.info("complete", f"fallback reply: {exchange.reply}")
            else:
                trace.ok("complete", f"chars={len(exchange.reply)}")
        except StageError as exc:
            return self._failed(trace, exc.stage, str(exc))
        except DeadlineExceeded as exc:
            return self._failed(trace, "deadline", str(exc))
        except Exception as exc:
            logger.exception("Unexpected audio pipeline failure sender=%s", message.sender)
            return self._failed(trace, "pipeline", f"unexpected error: {exc.__class__.__name__}")

        logger.info("Audio pipeline succeeded sender=%s\n%s", message.sender, trace.render())
        return RelayReply(text=exchange.reply, outcome=ReplyOutcome.REPLIED, trace=trace)

    async def _transcribe_message(
        self,
        message: IncomingMessage,
        trace: PipelineTrace,
        deadline: Deadline,
    ) -> str:
        credentials = await self._credentials.resolve()
        audio = await self._fetcher.fetch(message.media_url or "", credentials, trace, deadline)

        with self._stager.stage(audio) as artifact:
            trace.ok("stage", f"file={artifact.path.name} bytes={artifact.size}")
            handle = await self._uploader.upload(artifact, deadline)
        trace.ok("upload", handle.uri)

        return await self._orchestrator.transcribe(handle, trace, deadline)

    def _failed(self, trace: PipelineTrace, stage: str, detail: str) -> RelayReply:
        trace.error(stage, detail)
        record_stage_failure(stage)
        logger.warning("Audio pipeline failed at %s: %s\n%s", stage, detail, trace.render())

        text = AUDIO_FAILURE_TEXT
        if self._echo_trace:
            text = f"{AUDIO_FAILURE_TEXT}\n\n{trace.render()}"
        return RelayReply(text=text, outcome=ReplyOutcome.AUDIO_FAILED, trace=trace)


__all__ = ["AUDIO_FAILURE_TEXT", "AudioPipeline", "PipelineStage"]
