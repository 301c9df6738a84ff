"""Client for the download-with-metadata service, with direct-link fallback.

WHY: Listeners download single tracks or whole albums. The tagged download
goes through the service, but a listener should still get the audio when
the service is down or rejects the request, just without the metadata.

HOW: TrackDownloader wraps an httpx.AsyncClient. download_track() posts the
track and album fields to the service and saves the returned bytes. On any
service failure it logs the error and GETs the track's file URL directly.
download_album() walks an AlbumManifest in order with a pause between
tracks.

RULES:
- Use as: async with TrackDownloader(service_url) as downloader: ...
- Files are saved as "NN - SafeTitle.mp3" in dest_dir for both paths
- The fallback path never injects metadata (with_metadata=False)
- If the fallback also fails, AssetFetchError propagates
- trackNumber is the 1-based manifest index, totalTracks the track count
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx

from soundshelf.api.client import REQUEST_ERRORS, AssetFetchError
from soundshelf.api.models import AlbumManifest, DownloadResult, TrackEntry
from soundshelf.config import CONNECT_TIMEOUT_S, DOWNLOAD_DELAY_S, FETCH_TIMEOUT_S
from soundshelf.core.naming import track_filename

logger = logging.getLogger(__name__)

DOWNLOAD_PATH = "/download-with-metadata"


class TrackDownloader:
    """Downloads tagged tracks from the service into a local directory."""

    def __init__(
        self,
        service_url: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = service_url.rstrip("/") + DOWNLOAD_PATH
        self._timeout = httpx.Timeout(
            timeout if timeout is not None else FETCH_TIMEOUT_S,
            connect=CONNECT_TIMEOUT_S,
        )
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> TrackDownloader:
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
        if self._client is None:
            raise RuntimeError(
                "TrackDownloader must be used as an async context manager: "
                "async with TrackDownloader(url) as downloader: ..."
            )
        return self._client

    async def _fetch_tagged(
        self,
        track: TrackEntry,
        album: AlbumManifest,
        track_number: int,
        total_tracks: int,
    ) -> bytes:
        client = self._ensure_client()
        body = {
            "fileUrl": track.file_url,
            "title": track.title,
            "artist": album.artist,
            "album": album.title,
            "trackNumber": track_number,
            "totalTracks": total_tracks,
            "albumArtUrl": album.image_url,
        }
        resp = await client.post(self._endpoint, json=body)
        resp.raise_for_status()
        return resp.content

    async def _fetch_direct(self, track: TrackEntry) -> bytes:
        client = self._ensure_client()
        try:
            resp = await client.get(track.file_url)
        except REQUEST_ERRORS as exc:
            raise AssetFetchError(
                track.file_url, "Direct download failed: {}".format(exc)
            ) from exc
        if not resp.is_success:
            raise AssetFetchError(
                track.file_url,
                "Direct download failed: HTTP {}".format(resp.status_code),
                status_code=resp.status_code,
            )
        return resp.content

    async def download_track(
        self,
        track: TrackEntry,
        album: AlbumManifest,
        track_number: int,
        total_tracks: int,
        dest_dir: Path,
    ) -> DownloadResult:
        """Download one track, tagged if possible, raw otherwise.

        WHY: Mirrors the web player's download button: ask the service for a
        tagged file, and if that fails hand the listener the stored file.

        HOW: POSTs the service request. Any httpx error (including non-2xx
        via raise_for_status, or a malformed service URL) switches to a
        direct GET of file_url.

        RULES:
        - The destination name is the same on both paths
        - Raises AssetFetchError only when the direct download fails too

        Args:
            track: The track row (title and file URL).
            album: The album the track belongs to (artist, title, cover).
            track_number: 1-based position of the track on the album.
            total_tracks: Number of tracks on the album.
            dest_dir: Existing directory to save the file in.

        Returns:
            DownloadResult with the saved path and whether tags were injected.
        """
        path = Path(dest_dir) / track_filename(track_number, track.title)
        try:
            content = await self._fetch_tagged(track, album, track_number, total_tracks)
        except REQUEST_ERRORS as exc:
            logger.error(
                "Download error for %r, falling back to direct download: %s",
                track.title,
                exc,
            )
            content = await self._fetch_direct(track)
            path.write_bytes(content)
            return DownloadResult(path=path, with_metadata=False)

        path.write_bytes(content)
        return DownloadResult(path=path, with_metadata=True)

    async def download_album(
        self,
        album: AlbumManifest,
        dest_dir: Path,
        delay_s: float | None = None,
    ) -> list[DownloadResult]:
        """Download every track of ``album`` in order, pausing between tracks."""
        delay = DOWNLOAD_DELAY_S if delay_s is None else delay_s
        total = len(album.tracks)
        results: list[DownloadResult] = []
        for index, track in enumerate(album.tracks):
            results.append(
                await self.download_track(track, album, index + 1, total, dest_dir)
            )
            if index < total - 1 and delay > 0:
                await asyncio.sleep(delay)
        return results
