"""Command-line interface for SoundShelf.

WHY: Operators need to tag local files, pull whole albums through the
download service, and run the service itself without writing code. The CLI
wires those three flows behind one command.

HOW: argparse with three subcommands:
  tag      — inject a fresh ID3v2.3 tag into a local MP3 (core.id3.inject)
  download — download every track of an album manifest via TrackDownloader,
             falling back to direct links when the service fails
  serve    — run the FastAPI app under uvicorn
Async work runs via asyncio.run(). Status messages go to stderr.

RULES:
- Status output goes to stderr (not stdout)
- Errors print "Error: ..." to stderr and exit with status 1
- tag writes "NN - SafeTitle.mp3" next to the input unless --output is given
- --track/--total default to 1
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from soundshelf.api.client import AssetFetchError
from soundshelf.api.downloader import TrackDownloader
from soundshelf.api.models import AlbumManifest
from soundshelf.config import DOWNLOAD_DELAY_S, SERVER_HOST, SERVER_PORT, load_service_url
from soundshelf.core.id3 import TagTooLargeError, existing_tag_size, inject
from soundshelf.core.naming import track_filename
from soundshelf.core.tags import TagFields


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# tag
# ---------------------------------------------------------------------------


def _run_tag(args: argparse.Namespace) -> None:
    """Tag a local MP3 file.

    RULES:
    - Input must exist; cover art, if given, must exist
    - Output defaults to the input's directory with the track filename
    - Refuses to overwrite the input file in place
    """
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    album_art = None  # type: Optional[bytes]
    if args.cover:
        cover_path = Path(args.cover).resolve()
        if not cover_path.is_file():
            _fail("Cover art not found: {}".format(cover_path))
        album_art = cover_path.read_bytes()

    if args.output:
        output_path = Path(args.output).resolve()
    else:
        output_path = input_path.parent / track_filename(args.track, args.title)

    if output_path == input_path:
        _fail("Output would overwrite the input file: {}".format(input_path))

    audio = input_path.read_bytes()
    fields = TagFields(
        title=args.title,
        artist=args.artist,
        album=args.album,
        track_number=args.track,
        total_tracks=args.total,
        album_art=album_art,
    )

    stripped = existing_tag_size(audio)
    if stripped:
        _status("Removing existing tag ({} bytes)".format(stripped))

    try:
        tagged = inject(audio, fields)
    except TagTooLargeError as exc:
        _fail(str(exc))

    output_path.write_bytes(tagged)
    _status("Saved: {}".format(output_path))


# ---------------------------------------------------------------------------
# download
# ---------------------------------------------------------------------------


def _load_manifest(path: Path) -> AlbumManifest:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return AlbumManifest.from_dict(data)


async def _run_download(args: argparse.Namespace) -> None:
    """Download every track of an album manifest.

    RULES:
    - The service URL comes from --service-url or SOUNDSHELF_SERVICE_URL
    - Output directory must already exist
    - Tracks that fell back to a direct download are reported as untagged
    """
    manifest_path = Path(args.manifest).resolve()
    if not manifest_path.is_file():
        _fail("Manifest not found: {}".format(manifest_path))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else Path.cwd()
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    try:
        service_url = args.service_url or load_service_url()
        album = _load_manifest(manifest_path)
    except (ValueError, KeyError) as exc:
        _fail("Invalid configuration or manifest: {}".format(exc))

    _status("Downloading '{}' by {} ({} tracks)...".format(
        album.title, album.artist, len(album.tracks)
    ))

    try:
        async with TrackDownloader(service_url) as downloader:
            results = await downloader.download_album(
                album, output_dir, delay_s=args.delay
            )
    except AssetFetchError as exc:
        _fail(str(exc))

    untagged = 0
    for result in results:
        if result.with_metadata:
            _status("  Saved: {}".format(result.path.name))
        else:
            untagged += 1
            _status("  Saved without metadata: {}".format(result.path.name))

    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(results), output_dir))
    if untagged:
        _status("  {} file(s) could not be tagged".format(untagged))


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


def _run_serve(args: argparse.Namespace) -> None:
    from soundshelf.server.app import run_api

    run_api(host=args.host, port=args.port)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable: tests can inspect the parser without running anything.
    """
    parser = argparse.ArgumentParser(
        prog="soundshelf",
        description="Tag MP3 files with album metadata and serve tagged downloads.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    tag = subparsers.add_parser("tag", help="Write a fresh ID3v2.3 tag into a local MP3.")
    tag.add_argument("input_file", help="Path to the MP3 file.")
    tag.add_argument("--title", required=True, help="Track title.")
    tag.add_argument("--artist", required=True, help="Artist name.")
    tag.add_argument("--album", required=True, help="Album title.")
    tag.add_argument(
        "--track", type=_positive_int, default=1,
        help="Track number (default: %(default)s).",
    )
    tag.add_argument(
        "--total", type=_positive_int, default=1,
        help="Total number of tracks (default: %(default)s).",
    )
    tag.add_argument("--cover", default=None, help="Path to a JPEG cover image.")
    tag.add_argument(
        "--output", default=None,
        help="Output path (default: 'NN - Title.mp3' next to the input).",
    )

    download = subparsers.add_parser(
        "download", help="Download an album through the tagging service."
    )
    download.add_argument("manifest", help="Path to an album manifest JSON file.")
    download.add_argument(
        "--service-url", default=None,
        help="Base URL of the download service (default: SOUNDSHELF_SERVICE_URL).",
    )
    download.add_argument(
        "--output-dir", default=None,
        help="Directory to save tracks in (default: current directory).",
    )
    download.add_argument(
        "--delay", type=float, default=DOWNLOAD_DELAY_S,
        help="Seconds to wait between tracks (default: %(default)s).",
    )

    serve = subparsers.add_parser("serve", help="Run the download API server.")
    serve.add_argument("--host", default=SERVER_HOST, help="Bind address (default: %(default)s).")
    serve.add_argument(
        "--port", type=int, default=SERVER_PORT, help="Port (default: %(default)s)."
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "tag":
        _run_tag(args)
    elif args.command == "download":
        asyncio.run(_run_download(args))
    elif args.command == "serve":
        _run_serve(args)


if __name__ == "__main__":
    main()
