"""Process-wide wiring of the relay collaborators.

Everything here is built once per process on first use. The credential
cache in particular must be a single shared instance: it is the only state
that outlives a request.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from chatrelay.pipelines.audio import AudioPipeline
from chatrelay.pipelines.responder import MessageResponder
from chatrelay.services.aws import create_boto3_client
from chatrelay.services.llm_client import CompletionClient
from chatrelay.services.media import MediaFetcher
from chatrelay.services.secrets import CredentialCache, MediaCredentials, SecretsManagerSource
from chatrelay.services.staging import ArtifactStager
from chatrelay.services.storage import ObjectUploader
from chatrelay.services.transcribe import AwsTranscribeBackend, TranscriptionOrchestrator

from .settings import Settings, settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_credential_cache() -> CredentialCache:
    """Return the process-lifetime secret cache."""

    return CredentialCache(SecretsManagerSource(create_boto3_client("secretsmanager")))


def build_message_responder(
    config: Settings,
    credential_cache: CredentialCache,
) -> MessageResponder:
    """Assemble a responder from settings and a shared credential cache."""

    orchestrator = TranscriptionOrchestrator(
        AwsTranscribeBackend(
            create_boto3_client("transcribe"),
            timeout_seconds=config.media.timeout_seconds,
        ),
        language_code=config.transcribe.language_code,
        media_format=config.transcribe.media_format,
        poll_interval_seconds=config.transcribe.poll_interval_seconds,
        max_attempts=config.transcribe.max_poll_attempts,
        job_prefix=config.transcribe.job_prefix,
    )
    if orchestrator.poll_budget_seconds > config.pipeline.invocation_budget_seconds:
        logger.warning(
            "Transcription poll budget (%.0fs) exceeds the invocation budget (%.0fs)",
            orchestrator.poll_budget_seconds,
            config.pipeline.invocation_budget_seconds,
        )

    completion = CompletionClient(
        base_url=config.openai.base_url,
        model=config.openai.model,
        temperature=config.openai.temperature,
        system_prompt=config.openai.system_prompt,
        timeout_seconds=config.openai.timeout_seconds,
    )

    audio_pipeline = AudioPipeline(
        credentials=MediaCredentials(
            credential_cache,
            secret_id=config.secrets.media_secret_id,
            username_field=config.secrets.media_username_field,
            password_field=config.secrets.media_password_field,
        ),
        fetcher=MediaFetcher(timeout_seconds=config.media.timeout_seconds),
        stager=ArtifactStager(
            directory=config.media.staging_dir,
            extension=config.transcribe.media_format,
        ),
        uploader=ObjectUploader(
            create_boto3_client("s3"),
            bucket=config.s3.bucket_name,
            prefix=config.s3.key_prefix,
        ),
        orchestrator=orchestrator,
        completion=completion,
        echo_trace=config.pipeline.echo_trace,
    )

    return MessageResponder(
        credentials=credential_cache,
        completion=completion,
        audio_pipeline=audio_pipeline,
        completion_secret_id=config.secrets.completion_secret_id,
        completion_secret_field=config.secrets.completion_secret_field,
        invocation_budget_seconds=config.pipeline.invocation_budget_seconds,
    )


@lru_cache(maxsize=1)
def get_message_responder() -> MessageResponder:
    """Return the shared responder used by the webhook controller."""

    return build_message_responder(settings, get_credential_cache())


__all__ = ["build_message_responder", "get_credential_cache", "get_message_responder"]
