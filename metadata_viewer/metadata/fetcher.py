"""Bounded, truncation-aware download of remote image bytes."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, Optional

import httpx

from metadata_viewer.metadata.exceptions import HTTPStatusError, TransportError

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
DEFAULT_USER_AGENT = "image-metadata-viewer/2.0"


@dataclass
class FetchResult:
    """Outcome of a successful (2xx) fetch.

    Attributes:
        data: Body bytes, at most ``max_bytes`` long
        truncated: Whether the body was longer than ``max_bytes``
        status_code: HTTP status code
        reason: HTTP reason phrase
        headers: Response headers
        elapsed: Wall time from dispatch to end of body read, millisecond precision
    """
    data: bytes
    truncated: bool
    status_code: int
    reason: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    elapsed: timedelta = field(default_factory=timedelta)

    @property
    def status(self) -> str:
        return f"{self.status_code} {self.reason}".strip()

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def content_length(self) -> int:
        """Declared length, or -1 when absent or malformed. Never trusted for reads."""
        return parse_content_length(self.headers.get("content-length"))

    @property
    def last_modified(self) -> str:
        return self.headers.get("last-modified", "")


def parse_content_length(raw: Optional[str]) -> int:
    if raw is None:
        return -1
    try:
        value = int(raw.strip())
    except ValueError:
        return -1
    return value if value >= 0 else -1


def _elapsed_since(start: float) -> timedelta:
    return timedelta(milliseconds=round((time.perf_counter() - start) * 1000))


class BoundedFetcher:
    """Issues single GET requests and reads at most ``max_bytes + 1`` body bytes.

    The fetcher owns one ``httpx.AsyncClient``; call ``aclose`` when done.
    Failures are reported once, never retried.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self.client = httpx.AsyncClient(
            headers={"User-Agent": user_agent},
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            transport=transport,
        )
        log.info("Initialized HTTP client (timeout=%ss)", timeout)

    async def fetch(self, url: str, max_bytes: int) -> FetchResult:
        """Download ``url`` with a fixed absolute timeout.

        Cancelling the calling task cancels the request.

        Raises:
            TransportError: On DNS, connect, TLS, protocol or timeout failures
            HTTPStatusError: On a non-2xx response
        """
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")

        start = time.perf_counter()
        try:
            return await asyncio.wait_for(self._fetch(url, max_bytes, start), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            log.warning("Fetch of %s timed out after %ss", url, self.timeout)
            raise TransportError(f"fetch error: timed out after {self.timeout:g}s", _elapsed_since(start)) from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            log.warning("Fetch of %s failed: %s", url, e)
            raise TransportError(f"fetch error: {str(e) or type(e).__name__}", _elapsed_since(start)) from e

    async def _fetch(self, url: str, max_bytes: int, start: float) -> FetchResult:
        async with self.client.stream("GET", url) as response:
            headers = {key.lower(): value for key, value in response.headers.items()}
            if not response.is_success:
                raise HTTPStatusError(
                    response.status_code,
                    response.reason_phrase,
                    headers,
                    elapsed=_elapsed_since(start),
                )

            limit = max_bytes + 1
            buf = bytearray()
            async for chunk in response.aiter_bytes():
                buf.extend(chunk[: limit - len(buf)])
                if len(buf) >= limit:
                    break

        truncated = len(buf) > max_bytes
        if truncated:
            del buf[max_bytes:]
            log.info("Truncated %s at %d bytes", url, max_bytes)

        return FetchResult(
            data=bytes(buf),
            truncated=truncated,
            status_code=response.status_code,
            reason=response.reason_phrase,
            headers=headers,
            elapsed=_elapsed_since(start),
        )

    async def aclose(self):
        await self.client.aclose()
        log.info("Closed HTTP client")
