"""Authenticated download of inbound message attachments."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import httpx

from chatrelay.services.errors import AuthUnavailable, FetchError
from chatrelay.utils.clock import Deadline, DeadlineExceeded

if TYPE_CHECKING:
    from chatrelay.pipelines.audio.trace import PipelineTrace

logger = logging.getLogger(__name__)

STAGE = "fetch"


class MediaFetcher:
    """Download raw media bytes from a host protected by HTTP Basic auth."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def fetch(
        self,
        url: str,
        credentials: tuple[str, str] | None,
        trace: "PipelineTrace",
        deadline: Deadline | None = None,
    ) -> bytes:
        """Return the body at ``url``; record status and size in ``trace``."""

        if not credentials:
            raise AuthUnavailable("Media host credentials are not available.")
        if not url:
            raise FetchError("Media URL is empty.")

        deadline = deadline or Deadline.unbounded()
        timeout = deadline.bound(self._timeout_seconds)
        async with httpx.AsyncClient(
            transport=self._transport,
            auth=httpx.BasicAuth(*credentials),
            follow_redirects=True,
            timeout=timeout,
        ) as client:
            try:
                response = await deadline.run(client.get(url))
                response.raise_for_status()
            except DeadlineExceeded as exc:
                raise FetchError(f"Media download interrupted: {exc}") from exc
            except httpx.HTTPStatusError as exc:
                raise FetchError(
                    f"Media host answered {exc.response.status_code} for {url}"
                ) from exc
            except httpx.HTTPError as exc:
                raise FetchError(f"Unable to download media: {exc}") from exc

        payload = response.content
        if not payload:
            raise FetchError(f"Media host returned an empty body for {url}")

        trace.ok(STAGE, f"status={response.status_code} bytes={len(payload)}")
        logger.info("Downloaded media status=%s bytes=%s", response.status_code, len(payload))
        return payload


__all__ = ["MediaFetcher"]
