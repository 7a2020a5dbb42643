"""Process-lifetime cache for Secrets Manager values.

The cache is constructed once per process (see
``chatrelay.config.dependencies``) and shared by every invocation. For each
secret name the first caller performs the fetch while concurrent callers wait
on the same in-flight future, so a name is fetched at most once until a fetch
succeeds. Only successful, non-empty values are published; a failed fetch
leaves the slot empty and the next caller retries. Once published, a value
never changes for the rest of the process.
"""

from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from chatrelay.services.errors import SecretSourceError
from chatrelay.telemetry import record_secret_fetch

logger = logging.getLogger(__name__)


class SecretSource(Protocol):
    """Anything able to return the raw string value of a named secret."""

    def get_secret(self, name: str) -> str:
        ...


class SecretsManagerSource:
    """Read secrets from AWS Secrets Manager."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def get_secret(self, name: str) -> str:
        try:
            response = self._client.get_secret_value(SecretId=name)
        except (BotoCoreError, ClientError) as exc:
            raise SecretSourceError(f"Failed to read secret {name!r}: {exc}") from exc

        value = response.get("SecretString")
        if value is None:
            raise SecretSourceError(f"Secret {name!r} has no string value.")
        return value


@dataclass(frozen=True)
class CachedSecret:
    """Lookup result: the secret value and whether it was available."""

    value: Optional[str] = None

    @property
    def present(self) -> bool:
        return bool(self.value)


UNAVAILABLE = CachedSecret()


def _parse_document(raw: str) -> Mapping[str, Any] | None:
    if not raw.strip().startswith("{"):
        return None
    try:
        document = json.loads(raw)
    except ValueError:
        return None
    return document if isinstance(document, dict) else None


class CredentialCache:
    """Lazily fetch and cache secrets for the lifetime of the process."""

    def __init__(self, source: SecretSource) -> None:
        self._source = source
        self._lock = threading.Lock()
        self._values: dict[str, str] = {}
        self._inflight: dict[str, Future] = {}

    def _raw(self, name: str) -> Optional[str]:
        with self._lock:
            cached = self._values.get(name)
            if cached is not None:
                return cached
            pending = self._inflight.get(name)
            owner = pending is None
            if owner:
                pending = Future()
                self._inflight[name] = pending

        if not owner:
            return pending.result()

        value: Optional[str] = None
        try:
            value = self._source.get_secret(name)
        except SecretSourceError as exc:
            logger.warning("Secret %s unavailable: %s", name, exc)
        except Exception as exc:  # pragma: no cover - unexpected source failure
            logger.exception("Unexpected error reading secret %s", name)
            with self._lock:
                self._inflight.pop(name, None)
            pending.set_exception(exc)
            raise

        with self._lock:
            if value and value.strip():
                # First successful fetch wins; later values never replace it.
                value = self._values.setdefault(name, value)
                record_secret_fetch("success")
            else:
                value = None
                record_secret_fetch("failure")
            self._inflight.pop(name, None)
        pending.set_result(value)
        return value

    def get(self, name: str, field: str | None = None) -> CachedSecret:
        """Return the secret, unwrapping ``field`` when the value is a JSON document.

        Values that are not JSON objects, or documents without ``field``, are
        returned verbatim.
        """

        raw = self._raw(name)
        if raw is None:
            return UNAVAILABLE
        if field:
            document = _parse_document(raw)
            if document is not None and field in document:
                unwrapped = document[field]
                return CachedSecret(str(unwrapped) if unwrapped is not None else None)
        return CachedSecret(raw)

    def get_pair(self, name: str, first: str, second: str) -> tuple[str, str] | None:
        """Return two named string fields from a JSON secret, or ``None``."""

        raw = self._raw(name)
        if raw is None:
            return None
        document = _parse_document(raw)
        if document is None:
            logger.warning("Secret %s is not a keyed document", name)
            return None
        left, right = document.get(first), document.get(second)
        if not left or not right:
            logger.warning("Secret %s is missing %s or %s", name, first, second)
            return None
        return str(left), str(right)

    async def aget(self, name: str, field: str | None = None) -> CachedSecret:
        return await run_in_threadpool(self.get, name, field)

    async def aget_pair(self, name: str, first: str, second: str) -> tuple[str, str] | None:
        return await run_in_threadpool(self.get_pair, name, first, second)

    def is_cached(self, name: str) -> bool:
        with self._lock:
            return name in self._values


class MediaCredentials:
    """Basic-auth pair for the media host, read through the shared cache."""

    def __init__(
        self,
        cache: CredentialCache,
        *,
        secret_id: str,
        username_field: str,
        password_field: str,
    ) -> None:
        self._cache = cache
        self._secret_id = secret_id
        self._username_field = username_field
        self._password_field = password_field

    async def resolve(self) -> tuple[str, str] | None:
        return await self._cache.aget_pair(
            self._secret_id,
            self._username_field,
            self._password_field,
        )


__all__ = [
    "CachedSecret",
    "CredentialCache",
    "MediaCredentials",
    "SecretSource",
    "SecretsManagerSource",
    "UNAVAILABLE",
]
