"""Plain data types for ID3 tag construction.

WHY: The injector builds a tag from a handful of descriptive fields and
emits it as a list of frames. Keeping the inputs and the frame records as
typed dataclasses makes the byte layout in id3.py easy to test piece by
piece.

HOW: Two dataclasses:
  TagFields — the descriptive fields supplied by the caller
  Frame     — one ID3v2.3 frame (id + payload), serialized by to_bytes()

RULES:
- track_number and total_tracks default to 1
- track_number <= total_tracks is NOT enforced (caller's responsibility)
- Frame flags are always zero
- Frame.size counts payload bytes only, never the 10-byte frame header
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

FRAME_HEADER_SIZE = 10


@dataclass
class TagFields:
    """Descriptive fields written into a fresh tag.

    RULES:
    - title, artist, album are assumed non-empty (validated upstream)
    - album_art is raw image bytes; None or b"" means no APIC frame
    """

    title: str
    artist: str
    album: str
    track_number: int = 1
    total_tracks: int = 1
    album_art: bytes | None = None


@dataclass
class Frame:
    """A single ID3v2.3 frame.

    The header is the 4-byte ASCII frame id, a 4-byte big-endian payload
    size (plain binary, not syncsafe), and two zero flag bytes.
    """

    frame_id: str
    payload: bytes

    @property
    def size(self) -> int:
        """Declared payload size (excludes the frame header)."""
        return len(self.payload)

    def to_bytes(self) -> bytes:
        header = struct.pack(
            ">4sIH", self.frame_id.encode("ascii"), self.size, 0
        )
        return header + self.payload

    def __len__(self) -> int:
        return FRAME_HEADER_SIZE + self.size
