"""Local staging of downloaded audio before it is shipped to S3."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from chatrelay.services.errors import StagingError

logger = logging.getLogger(__name__)


class ScopedArtifact:
    """A staged audio file that is deleted when its ``with`` block exits."""

    def __init__(self, path: Path, payload: bytes, extension: str) -> None:
        self.path = path
        self.payload = payload
        self.extension = extension
        self._released = False

    @property
    def size(self) -> int:
        return len(self.payload)

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def release(self) -> None:
        """Delete the backing file. Safe to call more than once."""

        if self._released:
            return
        self._released = True
        try:
            self.path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove staged artifact %s", self.path, exc_info=True)

    def __enter__(self) -> "ScopedArtifact":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class ArtifactStager:
    """Write payloads to uniquely named temporary files."""

    def __init__(self, *, directory: str | None = None, extension: str = "ogg") -> None:
        self._directory = directory
        self._extension = extension.lstrip(".")

    def stage(self, payload: bytes) -> ScopedArtifact:
        try:
            if self._directory:
                Path(self._directory).mkdir(parents=True, exist_ok=True)
            fd, raw_path = tempfile.mkstemp(
                prefix="relay-audio-",
                suffix=f".{self._extension}",
                dir=self._directory,
            )
        except OSError as exc:
            raise StagingError(f"Could not allocate a staging file: {exc}") from exc

        path = Path(raw_path)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise StagingError(f"Could not write staged audio: {exc}") from exc

        logger.debug("Staged %s bytes at %s", len(payload), path)
        return ScopedArtifact(path, payload, self._extension)


__all__ = ["ArtifactStager", "ScopedArtifact"]
