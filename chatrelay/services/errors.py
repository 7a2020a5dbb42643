"""Error taxonomy shared by the message relay services.

Every failure raised inside the audio path derives from :class:`StageError`
and names the stage it belongs to, so the pipeline can record it in the trace
and turn it into a single user-facing reply.
"""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when a required setting or secret is missing or empty."""


class SecretSourceError(RuntimeError):
    """Raised by a secret source when a secret cannot be read."""


class StageError(RuntimeError):
    """Base class for failures of one audio pipeline stage."""

    stage = "pipeline"


class TransportError(StageError):
    """Network-level failure talking to a remote service."""


class FetchError(TransportError):
    """Raised when the media download fails."""

    stage = "fetch"


class AuthUnavailable(StageError):
    """Raised when the media host credential pair cannot be resolved."""

    stage = "fetch"


class StagingError(StageError):
    """Raised when the audio payload cannot be written to local storage."""

    stage = "stage"


class UploadError(TransportError):
    """Raised when the staged artifact cannot be stored in S3."""

    stage = "upload"


class TranscriptionError(StageError):
    """Raised when a transcription job fails, times out or returns garbage."""

    stage = "transcribe"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


__all__ = [
    "AuthUnavailable",
    "ConfigurationError",
    "FetchError",
    "SecretSourceError",
    "StageError",
    "StagingError",
    "TranscriptionError",
    "TransportError",
    "UploadError",
]
