"""ID3v2.3 tag writer and leading-tag stripper.

WHY: Tracks are stored without reliable metadata. When a listener
downloads a track we prepend a fresh ID3v2.3 tag (title, artist, album,
track number, cover art) so any player shows the right information. Any
tag already at the front of the file is dropped first so the download
carries exactly one tag.

HOW: Frames are built from TagFields by small encoders (UTF-16 text,
Latin-1 text, attached picture), concatenated in a fixed order, and
prefixed with a 10-byte header whose size field is syncsafe. An existing
tag is found by its "ID3" identifier and skipped using its declared size.
inject() glues the two together.

RULES:
- Frame order is fixed: TIT2, TPE1, TALB, TRCK, then APIC if art is given
- TIT2/TPE1/TALB use encoding 1 (UTF-16 with FF FE BOM, little-endian)
- TRCK uses encoding 0 and one byte per character, formatted "N/M"
- APIC always declares image/jpeg, picture type 3 (front cover)
- Frame sizes are plain big-endian; the tag header size is syncsafe
- Existing-tag detection checks only the 3-byte identifier, nothing else
- The strip offset is clamped to the buffer length
- Pure functions: no I/O, inputs are never mutated
"""

from __future__ import annotations

from soundshelf.core.tags import Frame, TagFields

# ---------------------------------------------------------------------------
# Format constants
# ---------------------------------------------------------------------------

TAG_IDENTIFIER = b"ID3"
TAG_MAJOR_VERSION = 3
TAG_REVISION = 0
TAG_HEADER_SIZE = 10

ENCODING_LATIN1 = 0
ENCODING_UTF16 = 1
UTF16_LE_BOM = b"\xff\xfe"

PICTURE_MIME_TYPE = "image/jpeg"
PICTURE_TYPE_FRONT_COVER = 3

SYNCSAFE_MAX = (1 << 28) - 1


class TagTooLargeError(ValueError):
    """Raised when the frames do not fit in a 28-bit syncsafe size."""


# ---------------------------------------------------------------------------
# Syncsafe integers
# ---------------------------------------------------------------------------


def encode_syncsafe(value: int) -> bytes:
    """Encode a non-negative integer as 4 syncsafe bytes.

    Each byte holds 7 bits, most significant group first, so the high bit
    of every output byte is 0.

    Raises:
        TagTooLargeError: if value does not fit in 28 bits.
    """
    if value < 0 or value > SYNCSAFE_MAX:
        raise TagTooLargeError(
            "Tag size {} is outside the syncsafe range 0..{}".format(
                value, SYNCSAFE_MAX
            )
        )
    return bytes(
        [
            (value >> 21) & 0x7F,
            (value >> 14) & 0x7F,
            (value >> 7) & 0x7F,
            value & 0x7F,
        ]
    )


def decode_syncsafe(data: bytes) -> int:
    """Decode 4 syncsafe bytes. The high bit of each byte is ignored."""
    b0, b1, b2, b3 = data[:4]
    return ((b0 & 0x7F) << 21) | ((b1 & 0x7F) << 14) | ((b2 & 0x7F) << 7) | (b3 & 0x7F)


# ---------------------------------------------------------------------------
# Frame encoders
# ---------------------------------------------------------------------------


def latin1_text_frame(frame_id: str, text: str) -> Frame:
    """Build a text frame with encoding 0, one byte per character.

    Characters above U+00FF keep only their low byte. Only TRCK goes through
    here and its digits and slash are always in range.
    """
    encoded = bytes(ord(ch) & 0xFF for ch in text)
    return Frame(frame_id, bytes([ENCODING_LATIN1]) + encoded)


def utf16_text_frame(frame_id: str, text: str) -> Frame:
    """Build a text frame with encoding 1: BOM FF FE then UTF-16LE code units.

    No terminator is written. Astral characters become a surrogate pair and
    lone surrogates are written through as-is, so the payload always has
    2 bytes per UTF-16 code unit.
    """
    encoded = text.encode("utf-16-le", "surrogatepass")
    return Frame(frame_id, bytes([ENCODING_UTF16]) + UTF16_LE_BOM + encoded)


def picture_frame(image: bytes) -> Frame:
    """Build an APIC frame declaring a JPEG front cover with no description."""
    payload = b"".join(
        [
            bytes([ENCODING_LATIN1]),
            PICTURE_MIME_TYPE.encode("ascii"),
            b"\x00",
            bytes([PICTURE_TYPE_FRONT_COVER]),
            b"\x00",
            bytes(image),
        ]
    )
    return Frame("APIC", payload)


def track_number_text(track_number: int, total_tracks: int) -> str:
    return "{}/{}".format(track_number, total_tracks)


def build_frames(fields: TagFields) -> list[Frame]:
    """Encode the tag fields into frames, in tag order."""
    frames = [
        utf16_text_frame("TIT2", fields.title),
        utf16_text_frame("TPE1", fields.artist),
        utf16_text_frame("TALB", fields.album),
        latin1_text_frame(
            "TRCK", track_number_text(fields.track_number, fields.total_tracks)
        ),
    ]
    if fields.album_art:
        frames.append(picture_frame(fields.album_art))
    return frames


# ---------------------------------------------------------------------------
# Tag container
# ---------------------------------------------------------------------------


def build_tag_header(total_frame_size: int) -> bytes:
    return (
        TAG_IDENTIFIER
        + bytes([TAG_MAJOR_VERSION, TAG_REVISION, 0])
        + encode_syncsafe(total_frame_size)
    )


def build_tag(fields: TagFields) -> bytes:
    """Build the complete ID3v2.3 tag (header followed by every frame).

    WHY: This is the block that gets prepended to the audio payload.

    HOW: Serializes each frame, sums their lengths for the header's
    syncsafe size, then concatenates header and frames.

    RULES:
    - The header size excludes the 10 header bytes themselves
    - Raises TagTooLargeError when the frames exceed 2^28 - 1 bytes
    """
    frame_bytes = [frame.to_bytes() for frame in build_frames(fields)]
    total_frame_size = sum(len(chunk) for chunk in frame_bytes)
    return build_tag_header(total_frame_size) + b"".join(frame_bytes)


# ---------------------------------------------------------------------------
# Existing tag detection
# ---------------------------------------------------------------------------


def existing_tag_size(data: bytes) -> int:
    """Return the number of leading bytes occupied by an existing tag.

    WHY: Source files often already carry a tag. Keeping it would leave two
    tags in the download, and most players only read the first.

    HOW: If the buffer starts with "ID3", bytes 6-9 are read as a syncsafe
    size and the tag spans 10 + size bytes. Otherwise 0.

    RULES:
    - Only the identifier is checked; version and flag bytes are not
    - The result never exceeds len(data), so a corrupt size or a truncated
      header strips at most the whole buffer
    """
    if data[:3] != TAG_IDENTIFIER:
        return 0
    if len(data) < TAG_HEADER_SIZE:
        return len(data)
    size = TAG_HEADER_SIZE + decode_syncsafe(data[6:10])
    return min(size, len(data))


def strip_existing_tag(data: bytes) -> bytes:
    """Return the audio payload with any leading tag removed."""
    return bytes(data[existing_tag_size(data):])


def inject(audio: bytes, fields: TagFields) -> bytes:
    """Replace the leading tag of ``audio`` with a fresh one built from ``fields``.

    Args:
        audio: Raw MP3 bytes, with or without an existing ID3v2 tag.
        fields: Title, artist, album, track numbering and optional cover art.

    Returns:
        New tag bytes followed by the original audio payload.
    """
    return build_tag(fields) + strip_existing_tag(audio)
