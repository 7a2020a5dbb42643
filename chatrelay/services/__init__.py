"""Service layer helpers for external integrations."""

from .errors import (
    AuthUnavailable,
    ConfigurationError,
    FetchError,
    SecretSourceError,
    StageError,
    StagingError,
    TranscriptionError,
    TransportError,
    UploadError,
)
from .llm_client import ChatExchange, CompletionClient
from .media import MediaFetcher
from .secrets import (
    CachedSecret,
    CredentialCache,
    MediaCredentials,
    SecretSource,
    SecretsManagerSource,
)
from .staging import ArtifactStager, ScopedArtifact
from .storage import ObjectUploader, RemoteObjectHandle
from .transcribe import (
    AwsTranscribeBackend,
    JobSnapshot,
    JobStatus,
    TranscriptionJob,
    TranscriptionJobBackend,
    TranscriptionOrchestrator,
)

__all__ = [
    "ArtifactStager",
    "AuthUnavailable",
    "AwsTranscribeBackend",
    "CachedSecret",
    "ChatExchange",
    "CompletionClient",
    "ConfigurationError",
    "CredentialCache",
    "FetchError",
    "JobSnapshot",
    "JobStatus",
    "MediaCredentials",
    "MediaFetcher",
    "ObjectUploader",
    "RemoteObjectHandle",
    "ScopedArtifact",
    "SecretSource",
    "SecretSourceError",
    "SecretsManagerSource",
    "StageError",
    "StagingError",
    "TranscriptionError",
    "TranscriptionJob",
    "TranscriptionJobBackend",
    "TranscriptionOrchestrator",
    "TransportError",
    "UploadError",
]
