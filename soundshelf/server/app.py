"""FastAPI application serving tagged MP3 downloads.

WHY: The web player offers a download button per track and a "download
all" button per album. Stored files carry no reliable metadata, so the
download goes through this service, which fetches the track and its cover
art and returns the file with a fresh ID3v2.3 tag.

HOW: POST /download-with-metadata validates the JSON body, fetches the
audio (fatal on failure) and the cover art (non-fatal) with AssetFetcher,
runs core.id3.inject(), and returns the bytes as an audio/mpeg attachment.
CORS is handled by Starlette's CORSMiddleware so browsers can call the
endpoint cross-origin, preflight included.

RULES:
- Missing fileUrl/title/artist/album → 400 {"error": "Missing required fields"}
- Bodies that are not JSON or have mistyped fields → 400
  {"error": "Invalid request body: ..."} instead of FastAPI's 422
- Any failure after validation → 500 {"error": "<message>"}, logged
- Cover-art failures are logged and the track is sent without APIC
- Filename is "NN - SafeTitle.mp3", percent-encoded in Content-Disposition
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from soundshelf import __version__
from soundshelf.api.client import AssetFetcher
from soundshelf.config import CORS_ALLOW_HEADERS, CORS_ORIGINS, SERVER_HOST, SERVER_PORT
from soundshelf.core.id3 import inject
from soundshelf.core.naming import content_disposition, track_filename
from soundshelf.core.tags import TagFields
from soundshelf.server.models import DownloadRequest, ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

AUDIO_MEDIA_TYPE = "audio/mpeg"

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="SoundShelf Download API",
    description=(
        "Serves album tracks as MP3 downloads with title, artist, album, "
        "track number and cover art written into an ID3v2.3 tag."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=CORS_ALLOW_HEADERS,
    expose_headers=["Content-Disposition"],
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    """Summarize the first body validation error as "field: message"."""
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())[1:])
    if first.get("type") == "json_invalid" or not location:
        return "Invalid request body: {}".format(first.get("msg", "malformed JSON"))
    return "Invalid request body: {}: {}".format(location, first.get("msg", "invalid value"))


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(
    http_request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Answer unparseable bodies with the same {"error": ...} shape as the endpoint."""
    return _error(400, _describe_validation_error(exc))


async def _build_tagged_file(request: DownloadRequest) -> bytes:
    """Fetch the request's assets and return the audio with a fresh tag.

    HOW: Opens one AssetFetcher for both downloads. The audio fetch raises
    on failure; the cover-art fetch returns None instead.
    """
    async with AssetFetcher() as fetcher:
        audio = await fetcher.fetch_audio(request.file_url)
        album_art = await fetcher.fetch_cover_art(request.album_art_url)

    fields = TagFields(
        title=request.title,
        artist=request.artist,
        album=request.album,
        track_number=request.resolved_track_number,
        total_tracks=request.resolved_total_tracks,
        album_art=album_art,
    )
    return inject(audio, fields)


# ---------------------------------------------------------------------------
# Endpoints: Downloads
# ---------------------------------------------------------------------------


@app.post(
    "/download-with-metadata",
    tags=["downloads"],
    summary="Download a track with embedded metadata",
    description=(
        "Fetches the MP3 at fileUrl and the optional cover image at "
        "albumArtUrl, replaces any leading ID3 tag with a new ID3v2.3 tag "
        "and returns the file as an attachment named 'NN - Title.mp3'."
    ),
    response_class=Response,
    responses={
        200: {
            "content": {AUDIO_MEDIA_TYPE: {}},
            "description": "The tagged MP3 file.",
        },
        400: {
            "model": ErrorResponse,
            "description": "Missing required fields or malformed body",
        },
        500: {"model": ErrorResponse, "description": "Audio fetch or tagging failed"},
    },
)
async def download_with_metadata(request: DownloadRequest) -> Response:
    if not request.has_required_fields():
        return _error(400, "Missing required fields")

    try:
        content = await _build_tagged_file(request)
    except Exception as exc:
        logger.exception("Error processing MP3 from %s", request.file_url)
        return _error(500, str(exc) or "Unknown error")

    filename = track_filename(request.resolved_track_number, request.title)
    return Response(
        content=content,
        media_type=AUDIO_MEDIA_TYPE,
        headers={"Content-Disposition": content_disposition(filename)},
    )


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api(host: str = SERVER_HOST, port: int = SERVER_PORT) -> None:
    """Entry point for the soundshelf-api console script."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)
