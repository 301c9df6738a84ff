"""Async HTTP fetcher for track audio and cover art.

WHY: The download service receives URLs, not bytes. Audio and cover art
live in object storage and must be pulled before a tag can be injected.
The two fetches fail differently: without audio there is nothing to send
back, without cover art the track is still worth downloading.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. AssetFetcher is an async
context manager: enter it to open a connection pool, exit to close it.
fetch_audio() raises on any failure, fetch_cover_art() logs and returns
None instead.

RULES:
- Always use the async context manager (async with AssetFetcher() as fetcher:)
- Redirects are followed (storage URLs commonly redirect to a CDN)
- Any non-2xx response counts as a failure
- fetch_audio raises AssetFetchError; fetch_cover_art never raises for
  network, HTTP or malformed-URL errors
- transport is injectable so tests can use httpx.MockTransport
"""

from __future__ import annotations

import logging

import httpx

from soundshelf.config import CONNECT_TIMEOUT_S, FETCH_TIMEOUT_S

logger = logging.getLogger(__name__)

# InvalidURL is not an HTTPError subclass
REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class AssetFetchError(Exception):
    """Raised when a remote asset cannot be downloaded.

    RULES:
    - url is always set
    - status_code is the HTTP status, or None for transport errors
    """

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class AssetFetcher:
    """Async client that downloads remote files into memory.

    RULES:
    - Use as: async with AssetFetcher() as fetcher: ...
    - timeout defaults to FETCH_TIMEOUT_S / CONNECT_TIMEOUT_S from config
    """

    def __init__(
        self,
        timeout: float | None = None,
        connect_timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = httpx.Timeout(
            timeout if timeout is not None else FETCH_TIMEOUT_S,
            connect=connect_timeout if connect_timeout is not None else CONNECT_TIMEOUT_S,
        )
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> AssetFetcher:
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "AssetFetcher must be used as an async context manager: "
                "async with AssetFetcher() as fetcher: ..."
            )
        return self._client

    async def fetch(self, url: str) -> bytes:
        """Download ``url`` and return the response body.

        Raises:
            AssetFetchError: on transport errors or non-2xx responses.
        """
        client = self._ensure_client()
        try:
            resp = await client.get(url)
        except REQUEST_ERRORS as exc:
            raise AssetFetchError(
                url, "Failed to fetch {}: {}".format(url, exc)
            ) from exc

        if not resp.is_success:
            raise AssetFetchError(
                url,
                "Failed to fetch {}: HTTP {}".format(url, resp.status_code),
                status_code=resp.status_code,
            )
        return resp.content

    async def fetch_audio(self, url: str) -> bytes:
        """Download the track audio. Failure is fatal for the caller."""
        try:
            return await self.fetch(url)
        except AssetFetchError as exc:
            raise AssetFetchError(
                url, "Failed to fetch MP3 file", status_code=exc.status_code
            ) from exc

    async def fetch_cover_art(self, url: str | None) -> bytes | None:
        """Download cover art, returning None when it is missing or unreachable.

        RULES:
        - url None or "" returns None without a request
        - Failures are logged at WARNING and swallowed
        """
        if not url:
            return None
        try:
            return await self.fetch(url)
        except AssetFetchError as exc:
            logger.warning("Failed to fetch album art: %s", exc)
            return None
