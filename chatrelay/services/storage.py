"""S3 storage helpers for staged audio messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from chatrelay.services.errors import UploadError
from chatrelay.services.staging import ScopedArtifact
from chatrelay.utils.clock import Deadline, DeadlineExceeded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteObjectHandle:
    """Location of an uploaded object."""

    bucket: str
    key: str

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


class ObjectUploader:
    """Move staged artifacts into a fixed S3 bucket under unique keys."""

    def __init__(self, client: Any, *, bucket: str, prefix: str = "audio-messages") -> None:
        self._client = client
        self._bucket = bucket
        self._prefix = prefix.strip("/")

    def _object_key(self, extension: str) -> str:
        name = f"{uuid4().hex}.{extension.lstrip('.')}"
        return f"{self._prefix}/{name}" if self._prefix else name

    async def upload(
        self,
        artifact: ScopedArtifact,
        deadline: Deadline | None = None,
    ) -> RemoteObjectHandle:
        """Upload the staged file and return its S3 handle.

        The transfer is abandoned with :class:`UploadError` when ``deadline``
        expires or is cancelled first.
        """

        if not self._bucket:
            raise UploadError("S3 bucket name is not configured.")

        deadline = deadline or Deadline.unbounded()
        object_key = self._object_key(artifact.extension)
        try:
            await deadline.run(
                run_in_threadpool(
                    self._client.upload_file,
                    str(artifact.path),
                    self._bucket,
                    object_key,
                )
            )
        except DeadlineExceeded as exc:
            raise UploadError(f"Upload to S3 interrupted: {exc}") from exc
        except (BotoCoreError, ClientError, S3UploadFailedError, OSError) as exc:
            raise UploadError(f"Failed to upload audio to S3: {exc}") from exc

        handle = RemoteObjectHandle(bucket=self._bucket, key=object_key)
        logger.info("Uploaded %s bytes to %s", artifact.size, handle.uri)
        return handle


__all__ = ["ObjectUploader", "RemoteObjectHandle"]
