"""Tests for the asset fetcher and the download client.

WHY: The two network paths have deliberately different failure rules:
audio failures are fatal, cover-art failures are not, and a failed service
call must still leave the listener with the raw file. These rules are easy
to break when touching error handling.

HOW: httpx.MockTransport stands in for the network, routing by URL to
canned responses. Async methods run under asyncio.run().

RULES:
- No real network access
- Each test builds its own transport and temp directory
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from soundshelf.api.client import AssetFetcher, AssetFetchError
from soundshelf.api.downloader import TrackDownloader
from soundshelf.api.models import AlbumManifest, TrackEntry

AUDIO_URL = "https://storage.example.com/tracks/intro.mp3"
ART_URL = "https://storage.example.com/covers/first.jpg"
SERVICE_URL = "https://api.example.com/functions/v1"


def _transport(routes):
    """Build a MockTransport from {url: response-or-exception} routes.

    Requests are recorded on the returned transport's ``calls`` list.
    """
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404)
        if isinstance(route, Exception):
            raise route
        return route

    transport = httpx.MockTransport(handler)
    transport.calls = calls
    return transport


def _manifest(tracks=2):
    return AlbumManifest(
        title="First Album",
        artist="The Band",
        image_url=ART_URL,
        tracks=[
            TrackEntry(title="Track {}".format(i + 1), file_url="{}?n={}".format(AUDIO_URL, i + 1))
            for i in range(tracks)
        ],
    )


# ---------------------------------------------------------------------------
# AssetFetcher
# ---------------------------------------------------------------------------


class TestAssetFetcher:

    def test_fetch_audio_returns_bytes(self):
        transport = _transport({AUDIO_URL: httpx.Response(200, content=b"mp3")})

        async def run():
            async with AssetFetcher(transport=transport) as fetcher:
                return await fetcher.fetch_audio(AUDIO_URL)

        assert asyncio.run(run()) == b"mp3"

    def test_fetch_audio_non_2xx_raises(self):
        transport = _transport({AUDIO_URL: httpx.Response(403)})

        async def run():
            async with AssetFetcher(transport=transport) as fetcher:
                await fetcher.fetch_audio(AUDIO_URL)

        with pytest.raises(AssetFetchError) as excinfo:
            asyncio.run(run())
        assert excinfo.value.status_code == 403
        assert str(excinfo.value) == "Failed to fetch MP3 file"

    def test_fetch_audio_transport_error_raises(self):
        transport = _transport({AUDIO_URL: httpx.ConnectError("refused")})

        async def run():
            async with AssetFetcher(transport=transport) as fetcher:
                await fetcher.fetch_audio(AUDIO_URL)

        with pytest.raises(AssetFetchError) as excinfo:
            asyncio.run(run())
        assert excinfo.value.status_code is None

    def test_cover_art_failure_returns_none(self, caplog):
        transport = _transport({ART_URL: httpx.ConnectError("refused")})

        async def run():
            async with AssetFetcher(transport=transport) as fetcher:
                return await fetcher.fetch_cover_art(ART_URL)

        with caplog.at_level("WARNING", logger="soundshelf.api.client"):
            assert asyncio.run(run()) is None
        assert "Failed to fetch album art" in caplog.text

    def test_malformed_url_audio_raises(self):
        transport = _transport({})

        async def run():
            async with AssetFetcher(transport=transport) as fetcher:
                await fetcher.fetch_audio("http://[::1")

        with pytest.raises(AssetFetchError) as excinfo:
            asyncio.run(run())
        assert excinfo.value.status_code is None
        assert transport.calls == []

    def test_malformed_url_cover_art_returns_none(self, caplog):
        transport = _transport({})

        async def run():
            async with AssetFetcher(transport=transport) as fetcher:
                return await fetcher.fetch_cover_art("http://[::1")

        with caplog.at_level("WARNING", logger="soundshelf.api.client"):
            assert asyncio.run(run()) is None
        assert "Failed to fetch album art" in caplog.text

    def test_cover_art_404_returns_none(self):
        transport = _transport({})

        async def run():
            async with AssetFetcher(transport=transport) as fetcher:
                return await fetcher.fetch_cover_art(ART_URL)

        assert asyncio.run(run()) is None

    def test_cover_art_without_url_makes_no_request(self):
        transport = _transport({})

        async def run():
            async with AssetFetcher(transport=transport) as fetcher:
                return await fetcher.fetch_cover_art(None)

        assert asyncio.run(run()) is None
        assert transport.calls == []

    def test_requires_context_manager(self):
        with pytest.raises(RuntimeError):
            asyncio.run(AssetFetcher().fetch(AUDIO_URL))


# ---------------------------------------------------------------------------
# TrackDownloader
# ---------------------------------------------------------------------------


class TestTrackDownloader:

    def test_tagged_download_saved(self, tmp_path):
        album = _manifest(tracks=1)
        transport = _transport({
            SERVICE_URL + "/download-with-metadata": httpx.Response(200, content=b"ID3tagged"),
        })

        async def run():
            async with TrackDownloader(SERVICE_URL, transport=transport) as downloader:
                return await downloader.download_track(album.tracks[0], album, 1, 1, tmp_path)

        result = asyncio.run(run())
        assert result.with_metadata is True
        assert result.path == tmp_path / "01 - Track 1.mp3"
        assert result.path.read_bytes() == b"ID3tagged"

    def test_request_body_matches_web_player(self, tmp_path):
        album = _manifest(tracks=1)
        transport = _transport({
            SERVICE_URL + "/download-with-metadata": httpx.Response(200, content=b"x"),
        })

        async def run():
            async with TrackDownloader(SERVICE_URL + "/", transport=transport) as downloader:
                await downloader.download_track(album.tracks[0], album, 4, 9, tmp_path)

        asyncio.run(run())
        body = json.loads(transport.calls[0].content)
        assert body == {
            "fileUrl": album.tracks[0].file_url,
            "title": "Track 1",
            "artist": "The Band",
            "album": "First Album",
            "trackNumber": 4,
            "totalTracks": 9,
            "albumArtUrl": ART_URL,
        }

    def test_falls_back_to_direct_download(self, tmp_path, caplog):
        album = _manifest(tracks=1)
        track = album.tracks[0]
        transport = _transport({
            SERVICE_URL + "/download-with-metadata": httpx.Response(500, json={"error": "boom"}),
            track.file_url: httpx.Response(200, content=b"raw mp3"),
        })

        async def run():
            async with TrackDownloader(SERVICE_URL, transport=transport) as downloader:
                return await downloader.download_track(track, album, 2, 5, tmp_path)

        with caplog.at_level("ERROR", logger="soundshelf.api.downloader"):
            result = asyncio.run(run())
        assert result.with_metadata is False
        assert result.path == tmp_path / "02 - Track 1.mp3"
        assert result.path.read_bytes() == b"raw mp3"
        assert "falling back" in caplog.text

    def test_fallback_on_service_unreachable(self, tmp_path):
        album = _manifest(tracks=1)
        track = album.tracks[0]
        transport = _transport({
            SERVICE_URL + "/download-with-metadata": httpx.ConnectError("down"),
            track.file_url: httpx.Response(200, content=b"raw"),
        })

        async def run():
            async with TrackDownloader(SERVICE_URL, transport=transport) as downloader:
                return await downloader.download_track(track, album, 1, 1, tmp_path)

        assert asyncio.run(run()).with_metadata is False

    def test_fallback_failure_raises(self, tmp_path):
        album = _manifest(tracks=1)
        transport = _transport({
            SERVICE_URL + "/download-with-metadata": httpx.Response(500),
        })

        async def run():
            async with TrackDownloader(SERVICE_URL, transport=transport) as downloader:
                await downloader.download_track(album.tracks[0], album, 1, 1, tmp_path)

        with pytest.raises(AssetFetchError) as excinfo:
            asyncio.run(run())
        assert excinfo.value.status_code == 404
        assert list(tmp_path.iterdir()) == []

    def test_fallback_on_malformed_service_url(self, tmp_path):
        album = _manifest(tracks=1)
        track = album.tracks[0]
        transport = _transport({track.file_url: httpx.Response(200, content=b"raw")})

        async def run():
            async with TrackDownloader("http://[::1", transport=transport) as downloader:
                return await downloader.download_track(track, album, 1, 1, tmp_path)

        result = asyncio.run(run())
        assert result.with_metadata is False
        assert result.path.read_bytes() == b"raw"

    def test_malformed_file_url_raises_fetch_error(self, tmp_path):
        album = _manifest(tracks=1)
        track = TrackEntry(title="Broken", file_url="http://[::1")
        transport = _transport({
            SERVICE_URL + "/download-with-metadata": httpx.Response(500),
        })

        async def run():
            async with TrackDownloader(SERVICE_URL, transport=transport) as downloader:
                await downloader.download_track(track, album, 1, 1, tmp_path)

        with pytest.raises(AssetFetchError) as excinfo:
            asyncio.run(run())
        assert excinfo.value.url == "http://[::1"
        assert list(tmp_path.iterdir()) == []

    def test_album_numbers_tracks_in_order(self, tmp_path):
        album = _manifest(tracks=3)
        transport = _transport({
            SERVICE_URL + "/download-with-metadata": httpx.Response(200, content=b"x"),
        })

        async def run():
            async with TrackDownloader(SERVICE_URL, transport=transport) as downloader:
                return await downloader.download_album(album, tmp_path, delay_s=0)

        results = asyncio.run(run())
        assert [r.path.name for r in results] == [
            "01 - Track 1.mp3",
            "02 - Track 2.mp3",
            "03 - Track 3.mp3",
        ]
        bodies = [json.loads(call.content) for call in transport.calls]
        assert [(b["trackNumber"], b["totalTracks"]) for b in bodies] == [(1, 3), (2, 3), (3, 3)]

    def test_album_pauses_between_tracks_only(self, tmp_path, monkeypatch):
        album = _manifest(tracks=3)
        transport = _transport({
            SERVICE_URL + "/download-with-metadata": httpx.Response(200, content=b"x"),
        })
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        monkeypatch.setattr("soundshelf.api.downloader.asyncio.sleep", fake_sleep)

        async def run():
            async with TrackDownloader(SERVICE_URL, transport=transport) as downloader:
                await downloader.download_album(album, tmp_path, delay_s=1.5)

        asyncio.run(run())
        assert sleeps == [1.5, 1.5]


class TestAlbumManifest:

    def test_from_dict(self):
        album = AlbumManifest.from_dict({
            "title": "First Album",
            "artist": "The Band",
            "image_url": "",
            "tracks": [{"title": "Intro", "file_url": AUDIO_URL}],
        })
        assert album.image_url is None
        assert album.tracks == [TrackEntry(title="Intro", file_url=AUDIO_URL)]

    def test_missing_tracks_raises(self):
        with pytest.raises(KeyError):
            AlbumManifest.from_dict({"title": "X", "artist": "Y"})
