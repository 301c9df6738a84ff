"""Album manifest and download result dataclasses.

WHY: The download client works from the same album/track rows the web app
reads from the database: an album with its artist and cover URL, and an
ordered list of tracks with their storage URLs. Typed dataclasses make
those rows explicit and catch missing keys early.

HOW: Each dataclass maps 1:1 to a JSON object. Factory methods (from_dict)
handle parsing from raw manifest dicts.

RULES:
- Track order in the manifest is the album order (track 1 first)
- image_url is optional; albums without it get text frames but no APIC
- from_dict raises KeyError on missing required keys
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class TrackEntry:
    """One track row: display title and public audio URL."""

    title: str
    file_url: str

    @classmethod
    def from_dict(cls, data: dict) -> TrackEntry:
        return cls(title=data["title"], file_url=data["file_url"])


@dataclass
class AlbumManifest:
    """An album and its tracks, in play order.

    RULES:
    - title, artist and tracks are required
    - image_url defaults to None
    """

    title: str
    artist: str
    image_url: str | None = None
    tracks: list[TrackEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> AlbumManifest:
        """Parse an AlbumManifest from a JSON-decoded dict."""
        return cls(
            title=data["title"],
            artist=data["artist"],
            image_url=data.get("image_url") or None,
            tracks=[TrackEntry.from_dict(t) for t in data["tracks"]],
        )


@dataclass
class DownloadResult:
    """Where a track was saved and whether it carries injected metadata.

    with_metadata is False when the service failed and the raw file was
    downloaded directly instead.
    """

    path: Path
    with_metadata: bool
