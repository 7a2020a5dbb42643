from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AwsConfig(BaseSettings):
    """Shared AWS client configuration"""

    region: str = "eu-west-1"
    access_key: Optional[str] = None
    secret_key: Optional[SecretStr] = None

    model_config = SettingsConfigDict(
        env_prefix="AWS_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class SecretsConfig(BaseSettings):
    """Names of the Secrets Manager entries the relay depends on."""

    completion_secret_id: str = "OpenAiApiKey"
    completion_secret_field: str = "OpenAiApiKey"
    media_secret_id: str = "TwilioCredentials"
    media_username_field: str = "TwilioAccountSid"
    media_password_field: str = "TwilioAuthToken"

    model_config = SettingsConfigDict(
        env_prefix="SECRETS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class S3Config(BaseSettings):
    """S3 configuration"""

    bucket_name: str = "twilio-audio-messages-eu-west-1-andreslandaaws"
    key_prefix: str = "audio-messages"

    model_config = SettingsConfigDict(
        env_prefix="S3_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class TranscribeConfig(BaseSettings):
    """Amazon Transcribe batch job configuration."""

    language_code: str = "en-US"
    media_format: str = "ogg"
    job_prefix: str = "chatrelay"
    poll_interval_seconds: float = Field(default=10.0, gt=0)
    max_poll_attempts: int = Field(default=30, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIBE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class OpenAIConfig(BaseSettings):
    """Chat completion endpoint configuration."""

    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-3.5-turbo"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    system_prompt: str = "You are ChatGPT."
    timeout_seconds: float = Field(default=30.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="OPENAI_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class MediaConfig(BaseSettings):
    """Media download and local staging configuration."""

    timeout_seconds: float = Field(default=20.0, gt=0)
    staging_dir: Optional[str] = Field(
        default=None,
        description="Directory for staged audio files; system temp dir when unset.",
    )

    model_config = SettingsConfigDict(
        env_prefix="MEDIA_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class PipelineConfig(BaseSettings):
    """Per-invocation limits and diagnostics policy."""

    invocation_budget_seconds: float = Field(default=330.0, gt=0)
    echo_trace: bool = Field(
        default=False,
        description="Append the stage trace to the user-visible failure text.",
    )

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class WebhookConfig(BaseSettings):
    """HTTP status policy for the webhook adapter."""

    audio_failure_status_code: int = Field(default=200, ge=200, le=599)
    key_unavailable_status_code: int = Field(default=500, ge=200, le=599)

    model_config = SettingsConfigDict(
        env_prefix="WEBHOOK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "ChatRelay Webhook"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"
    audio_log_file: str = "logs/audio_pipeline.log"
    transcript_log_file: str = "logs/transcripts.log"

    # AWS
    aws: AwsConfig = Field(default_factory=AwsConfig)
    secrets: SecretsConfig = Field(default_factory=SecretsConfig)
    s3: S3Config = Field(default_factory=S3Config)
    transcribe: TranscribeConfig = Field(default_factory=TranscribeConfig)

    # Completion service
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)

    # Audio path
    media: MediaConfig = Field(default_factory=MediaConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    # Transport adapter
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
