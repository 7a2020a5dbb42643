"""Amazon Transcribe batch job integration.

A transcription runs as an asynchronous job: submit it against the uploaded
S3 object, poll its status at a fixed interval, then download the transcript
document once the job completes. The poll loop is bounded twice: by its own
attempt budget (``max_attempts * poll_interval``) and by the caller's
:class:`~chatrelay.utils.clock.Deadline`, whichever runs out first. Every
backend call also runs under that deadline, so a hung submit, status poll
or transcript download is abandoned once the deadline expires or is
cancelled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Optional, Protocol, TypeVar
from uuid import uuid4

import httpx
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from chatrelay.services.errors import TranscriptionError
from chatrelay.services.storage import RemoteObjectHandle
from chatrelay.telemetry import record_transcription_polls
from chatrelay.utils.clock import Deadline, DeadlineExceeded

if TYPE_CHECKING:
    from chatrelay.pipelines.audio.trace import PipelineTrace

logger = logging.getLogger(__name__)

T = TypeVar("T")

STAGE = "transcribe"

MALFORMED_RESULT = "malformed result"
TIMED_OUT = "timed out"
INTERRUPTED = "interrupted"


class JobStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"

    @classmethod
    def from_backend(cls, value: str | None) -> "JobStatus":
        normalized = (value or "").upper()
        if normalized == "QUEUED":
            return cls.SUBMITTED
        try:
            return cls(normalized)
        except ValueError:
            return cls.IN_PROGRESS


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.TIMED_OUT})


@dataclass(frozen=True)
class JobSnapshot:
    """Status report returned by a backend for one poll."""

    status: str
    failure_reason: Optional[str] = None
    transcript_uri: Optional[str] = None


@dataclass
class TranscriptionJob:
    """Mutable state of one submitted job; only the poll loop updates it."""

    job_id: str
    status: JobStatus = JobStatus.SUBMITTED
    attempts: int = 0
    transcript_uri: Optional[str] = None
    failure_reason: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def apply(self, snapshot: JobSnapshot) -> None:
        status = JobStatus.from_backend(snapshot.status)
        # SUBMITTED is only the state before the first poll.
        self.status = JobStatus.IN_PROGRESS if status is JobStatus.SUBMITTED else status
        if snapshot.transcript_uri:
            self.transcript_uri = snapshot.transcript_uri
        if snapshot.failure_reason:
            self.failure_reason = snapshot.failure_reason


class TranscriptionJobBackend(Protocol):
    """Asynchronous transcription service operations."""

    async def start(
        self,
        job_id: str,
        language_code: str,
        media_format: str,
        source_uri: str,
    ) -> None:
        ...

    async def get_status(self, job_id: str) -> JobSnapshot:
        ...

    async def fetch_transcript(
        self,
        transcript_uri: str,
        deadline: Deadline | None = None,
    ) -> Any:
        ...


class AwsTranscribeBackend:
    """:class:`TranscriptionJobBackend` backed by boto3 and httpx."""

    def __init__(
        self,
        client: Any,
        *,
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = client
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def start(
        self,
        job_id: str,
        language_code: str,
        media_format: str,
        source_uri: str,
    ) -> None:
        try:
            await run_in_threadpool(
                self._client.start_transcription_job,
                TranscriptionJobName=job_id,
                LanguageCode=language_code,
                MediaFormat=media_format,
                Media={"MediaFileUri": source_uri},
            )
        except (BotoCoreError, ClientError) as exc:
            raise TranscriptionError(f"could not start job: {exc}") from exc

    async def get_status(self, job_id: str) -> JobSnapshot:
        try:
            response = await run_in_threadpool(
                self._client.get_transcription_job,
                TranscriptionJobName=job_id,
            )
        except (BotoCoreError, ClientError) as exc:
            raise TranscriptionError(f"could not read job status: {exc}") from exc

        job = response.get("TranscriptionJob", {})
        return JobSnapshot(
            status=job.get("TranscriptionJobStatus", ""),
            failure_reason=job.get("FailureReason"),
            transcript_uri=(job.get("Transcript") or {}).get("TranscriptFileUri"),
        )

    async def fetch_transcript(
        self,
        transcript_uri: str,
        deadline: Deadline | None = None,
    ) -> Any:
        timeout = deadline.bound(self._timeout_seconds) if deadline else self._timeout_seconds
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=timeout,
        ) as client:
            try:
                response = await client.get(transcript_uri)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise TranscriptionError(f"could not download transcript: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise TranscriptionError(MALFORMED_RESULT) from exc


def extract_transcript(document: Any) -> str:
    """Return ``results.transcripts[0].transcript`` or raise ``malformed result``."""

    try:
        text = document["results"]["transcripts"][0]["transcript"]
    except (KeyError, IndexError, TypeError) as exc:
        raise TranscriptionError(MALFORMED_RESULT) from exc
    if not isinstance(text, str):
        raise TranscriptionError(MALFORMED_RESULT)
    return text


class TranscriptionOrchestrator:
    """Submit a transcription job and poll it to a terminal state."""

    def __init__(
        self,
        backend: TranscriptionJobBackend,
        *,
        language_code: str = "en-US",
        media_format: str = "ogg",
        poll_interval_seconds: float = 10.0,
        max_attempts: int = 30,
        job_prefix: str = "chatrelay",
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._backend = backend
        self._language_code = language_code
        self._media_format = media_format
        self._poll_interval_seconds = poll_interval_seconds
        self._max_attempts = max_attempts
        self._job_prefix = job_prefix

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def poll_budget_seconds(self) -> float:
        return self._poll_interval_seconds * self._max_attempts

    def _new_job(self) -> TranscriptionJob:
        return TranscriptionJob(job_id=f"{self._job_prefix}-{uuid4().hex}")

    async def transcribe(
        self,
        handle: RemoteObjectHandle,
        trace: "PipelineTrace",
        deadline: Deadline | None = None,
    ) -> str:
        """Run a job for ``handle`` and return the transcript text."""

        deadline = deadline or Deadline.unbounded()
        job = self._new_job()

        await self._guarded(
            job,
            deadline,
            self._backend.start(
                job.job_id,
                self._language_code,
                self._media_format,
                handle.uri,
            ),
        )
        trace.info(STAGE, f"submitted job={job.job_id} source={handle.uri}")
        logger.info("Started transcription job %s for %s", job.job_id, handle.uri)

        try:
            await self._poll(job, trace, deadline)
        finally:
            record_transcription_polls(job.status.value, job.attempts)

        if not job.transcript_uri:
            raise TranscriptionError(MALFORMED_RESULT)
        document = await self._guarded(
            job,
            deadline,
            self._backend.fetch_transcript(job.transcript_uri, deadline),
        )
        text = extract_transcript(document)
        trace.ok(STAGE, f"job={job.job_id} chars={len(text)}")
        return text

    async def _poll(
        self,
        job: TranscriptionJob,
        trace: "PipelineTrace",
        deadline: Deadline,
    ) -> None:
        for attempt in range(1, self._max_attempts + 1):
            job.attempts = attempt
            job.apply(await self._guarded(job, deadline, self._backend.get_status(job.job_id)))
            trace.info(STAGE, f"attempt={attempt} status={job.status.value}")
            logger.debug("Job %s attempt %s status %s", job.job_id, attempt, job.status.value)

            if job.status is JobStatus.COMPLETED:
                return
            if job.status is JobStatus.FAILED:
                reason = job.failure_reason or "unknown failure"
                logger.warning("Transcription job %s failed: %s", job.job_id, reason)
                raise TranscriptionError(reason)
            if attempt == self._max_attempts:
                break

            try:
                await deadline.sleep(self._poll_interval_seconds)
            except DeadlineExceeded as exc:
                logger.warning("Polling for job %s interrupted: %s", job.job_id, exc)
                raise TranscriptionError(INTERRUPTED) from exc

        job.status = JobStatus.TIMED_OUT
        logger.warning(
            "Transcription job %s still pending after %s attempts",
            job.job_id,
            job.attempts,
        )
        raise TranscriptionError(TIMED_OUT)

    async def _guarded(
        self,
        job: TranscriptionJob,
        deadline: Deadline,
        call: Awaitable[T],
    ) -> T:
        """Await one backend call within the deadline."""

        try:
            return await deadline.run(call)
        except DeadlineExceeded as exc:
            logger.warning("Backend call for job %s interrupted: %s", job.job_id, exc)
            raise TranscriptionError(INTERRUPTED) from exc


__all__ = [
    "AwsTranscribeBackend",
    "JobSnapshot",
    "JobStatus",
    "TranscriptionJob",
    "TranscriptionJobBackend",
    "TranscriptionOrchestrator",
    "extract_transcript",
]
