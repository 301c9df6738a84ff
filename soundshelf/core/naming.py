"""Download filename helpers.

WHY: Downloads are saved as "NN - Title.mp3" so an album sorts in track
order in any file browser. Titles can contain characters that are illegal
in Windows/macOS filenames, and the name travels in an HTTP header.

HOW: Pure string functions shared by the HTTP service, the download client
and the CLI.

RULES:
- Track numbers are zero-padded to at least 2 digits
- Each of < > : " / \\ | ? * in the title becomes "_"
- Content-Disposition percent-encodes the name like encodeURIComponent
"""

from __future__ import annotations

import re
from urllib.parse import quote

_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')

# Characters encodeURIComponent leaves alone besides letters and digits
_URI_COMPONENT_SAFE = "-_.!~*'()"


def safe_title(title: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", title)


def track_filename(track_number: int, title: str) -> str:
    """Build the download filename, e.g. ``"03 - Intro.mp3"``."""
    return "{:02d} - {}.mp3".format(track_number, safe_title(title))


def content_disposition(filename: str) -> str:
    return 'attachment; filename="{}"'.format(
        quote(filename, safe=_URI_COMPONENT_SAFE)
    )
