"""Pydantic request/response models for the HTTP API.

WHY: The download endpoint takes a JSON body from the web player and
answers either with a file or with a JSON error. Pydantic models type the
body, document it in OpenAPI, and keep the field names the web player
already sends.

HOW: DownloadRequest uses camelCase aliases (fileUrl, trackNumber, ...) so
the body matches the player's fetch() call, while Python code reads
snake_case attributes. Every field is optional at the schema level; the
endpoint reports missing required fields itself with a 400 so the error
body stays {"error": "..."}.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- trackNumber/totalTracks of null or 0 resolve to 1
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DownloadRequest(BaseModel):
    """Body of POST /download-with-metadata.

    RULES:
    - file_url, title, artist, album are required (checked by the endpoint)
    - album_art_url is optional; failures fetching it are not errors
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "fileUrl": "https://storage.example.com/tracks/intro.mp3",
                    "title": "Intro",
                    "artist": "The Band",
                    "album": "First Album",
                    "trackNumber": 1,
                    "totalTracks": 12,
                    "albumArtUrl": "https://storage.example.com/covers/first.jpg",
                }
            ]
        },
    )

    file_url: Optional[str] = Field(
        default=None, alias="fileUrl", description="Public URL of the MP3 file."
    )
    title: Optional[str] = Field(default=None, description="Track title (TIT2).")
    artist: Optional[str] = Field(default=None, description="Artist name (TPE1).")
    album: Optional[str] = Field(default=None, description="Album title (TALB).")
    track_number: Optional[int] = Field(
        default=None,
        alias="trackNumber",
        description="1-based track position (TRCK). Defaults to 1.",
    )
    total_tracks: Optional[int] = Field(
        default=None,
        alias="totalTracks",
        description="Number of tracks on the album (TRCK). Defaults to 1.",
    )
    album_art_url: Optional[str] = Field(
        default=None,
        alias="albumArtUrl",
        description="Optional URL of the cover image embedded as APIC.",
    )

    def has_required_fields(self) -> bool:
        return bool(self.file_url and self.title and self.artist and self.album)

    @property
    def resolved_track_number(self) -> int:
        return self.track_number or 1

    @property
    def resolved_total_tracks(self) -> int:
        return self.total_tracks or 1


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - error is always a human-readable error message
    """

    error: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
