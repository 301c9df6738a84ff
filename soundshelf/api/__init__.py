"""HTTP-facing helpers: asset fetching and the download client.

WHY: Both the service and its clients talk to remote storage over HTTP.
Keeping that code in one package leaves the core free of I/O.

HOW: client.py holds AssetFetcher (audio + cover art for the service),
downloader.py holds TrackDownloader (service calls with direct-link
fallback), models.py holds the manifest and result dataclasses.

RULES:
- All outbound HTTP goes through httpx.AsyncClient in this package
- Clients are async context managers and must be closed after use
"""

from soundshelf.api.client import AssetFetcher, AssetFetchError
from soundshelf.api.downloader import TrackDownloader
from soundshelf.api.models import AlbumManifest, DownloadResult, TrackEntry

__all__ = [
    "AlbumManifest",
    "AssetFetchError",
    "AssetFetcher",
    "DownloadResult",
    "TrackDownloader",
    "TrackEntry",
]
