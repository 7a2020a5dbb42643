"""Shared fakes for the relay test-suite.

Every external collaborator has an in-memory stand-in here; HTTP services
are faked with :class:`httpx.MockTransport` so the real clients run
unchanged.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
import sys
from typing import Any, Callable

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from chatrelay.pipelines.audio import AudioPipeline  # noqa: E402
from chatrelay.pipelines.responder import MessageResponder  # noqa: E402
from chatrelay.services.errors import SecretSourceError  # noqa: E402
from chatrelay.services.llm_client import CompletionClient  # noqa: E402
from chatrelay.services.media import MediaFetcher  # noqa: E402
from chatrelay.services.secrets import CredentialCache, MediaCredentials  # noqa: E402
from chatrelay.services.staging import ArtifactStager  # noqa: E402
from chatrelay.services.storage import ObjectUploader  # noqa: E402
from chatrelay.services.transcribe import JobSnapshot, TranscriptionOrchestrator  # noqa: E402

COMPLETION_SECRET = "OpenAiApiKey"
MEDIA_SECRET = "TwilioCredentials"
MEDIA_URL = "https://api.twilio.com/2010-04-01/Accounts/AC1/Messages/MM1/Media/ME1"
TRANSCRIPT_URI = "https://transcripts.example.com/job.json"
AUDIO_BYTES = b"OggS\x00\x02fake-voice-note"


class FakeClock:
    """Clock whose sleeps advance virtual time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class BlockingClock(FakeClock):
    """Clock whose sleeps never finish on their own."""

    def __init__(self) -> None:
        super().__init__()
        self.sleeping = asyncio.Event()

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.sleeping.set()
        await asyncio.Event().wait()


class FakeSecretSource:
    """Secret store returning canned values; exceptions in ``values`` are raised."""

    def __init__(self, values: dict[str, Any]) -> None:
        self.values = dict(values)
        self.calls: list[str] = []

    def get_secret(self, name: str) -> str:
        self.calls.append(name)
        value = self.values.get(name)
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise SecretSourceError(f"no secret named {name}")
        return value


class FakeS3Client:
    """Records ``upload_file`` calls and the bytes present at upload time."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.uploads: list[dict[str, Any]] = []

    def upload_file(self, filename: str, bucket: str, key: str) -> None:
        if self.error is not None:
            raise self.error
        self.uploads.append(
            {
                "filename": filename,
                "bucket": bucket,
                "key": key,
                "body": Path(filename).read_bytes(),
            }
        )


class FakeJobBackend:
    """Transcription backend replaying a scripted list of statuses."""

    def __init__(
        self,
        statuses: list[str],
        *,
        transcript: str = "order a pizza",
        document: Any = None,
        failure_reason: str | None = None,
    ) -> None:
        self.statuses = statuses
        self.failure_reason = failure_reason
        self.document = (
            document
            if document is not None
            else {"results": {"transcripts": [{"transcript": transcript}]}}
        )
        self.started: list[dict[str, str]] = []
        self.status_calls = 0
        self.fetched: list[str] = []

    async def start(self, job_id: str, language_code: str, media_format: str, source_uri: str) -> None:
        self.started.append(
            {
                "job_id": job_id,
                "language_code": language_code,
                "media_format": media_format,
                "source_uri": source_uri,
            }
        )

    async def get_status(self, job_id: str) -> JobSnapshot:
        self.status_calls += 1
        status = self.statuses[min(self.status_calls, len(self.statuses)) - 1]
        return JobSnapshot(
            status=status,
            failure_reason=self.failure_reason if status == "FAILED" else None,
            transcript_uri=TRANSCRIPT_URI if status == "COMPLETED" else None,
        )

    async def fetch_transcript(self, transcript_uri: str, deadline: Any = None) -> Any:
        self.fetched.append(transcript_uri)
        return self.document


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def calls(self) -> int:
        return len(self.requests)


def completion_reply(content: str | None) -> httpx.Response:
    return httpx.Response(
        200,
        json={"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]},
    )


def echo_completion(request: httpx.Request) -> httpx.Response:
    payload = json.loads(request.content)
    return completion_reply(f"You asked: {payload['messages'][-1]['content']}")


def media_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=AUDIO_BYTES)


def valid_secrets() -> dict[str, Any]:
    return {
        COMPLETION_SECRET: json.dumps({"OpenAiApiKey": "sk-test"}),
        MEDIA_SECRET: json.dumps({"TwilioAccountSid": "AC1", "TwilioAuthToken": "token"}),
    }


class RelayHarness:
    """A fully wired responder built from fakes, with handles to inspect them."""

    def __init__(
        self,
        staging_dir: Path,
        *,
        secrets: dict[str, Any] | None = None,
        statuses: list[str] | None = None,
        media_handler: Callable[[httpx.Request], httpx.Response] = media_ok,
        completion_handler: Callable[[httpx.Request], httpx.Response] = echo_completion,
        s3_error: Exception | None = None,
        backend: FakeJobBackend | None = None,
        max_attempts: int = 30,
        echo_trace: bool = False,
        blocked_staging: bool = False,
    ) -> None:
        self.staging_dir = staging_dir
        stager_dir = staging_dir
        if blocked_staging:
            # A regular file where the staging directory should be.
            blocker = staging_dir / "not-a-directory"
            blocker.write_bytes(b"")
            stager_dir = blocker / "audio"
        self.clock = FakeClock()
        self.secret_source = FakeSecretSource(valid_secrets() if secrets is None else secrets)
        self.cache = CredentialCache(self.secret_source)
        self.media_transport = RecordingTransport(media_handler)
        self.completion_transport = RecordingTransport(completion_handler)
        self.s3 = FakeS3Client(error=s3_error)
        self.backend = backend or FakeJobBackend(statuses or ["IN_PROGRESS", "COMPLETED"])

        self.completion = CompletionClient(transport=self.completion_transport)
        self.pipeline = AudioPipeline(
            credentials=MediaCredentials(
                self.cache,
                secret_id=MEDIA_SECRET,
                username_field="TwilioAccountSid",
                password_field="TwilioAuthToken",
            ),
            fetcher=MediaFetcher(transport=self.media_transport),
            stager=ArtifactStager(directory=str(stager_dir), extension="ogg"),
            uploader=ObjectUploader(self.s3, bucket="relay-bucket", prefix="audio"),
            orchestrator=TranscriptionOrchestrator(
                self.backend,
                poll_interval_seconds=10,
                max_attempts=max_attempts,
            ),
            completion=self.completion,
            echo_trace=echo_trace,
        )
        self.responder = MessageResponder(
            credentials=self.cache,
            completion=self.completion,
            audio_pipeline=self.pipeline,
            completion_secret_id=COMPLETION_SECRET,
            completion_secret_field="OpenAiApiKey",
            invocation_budget_seconds=None,
            clock=self.clock,
        )

    def staged_files(self) -> list[Path]:
        return sorted(self.staging_dir.rglob("relay-audio-*"))


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def make_harness(staging_dir: Path) -> Callable[..., RelayHarness]:
    def _make(**kwargs: Any) -> RelayHarness:
        return RelayHarness(staging_dir, **kwargs)

    return _make
