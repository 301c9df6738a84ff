"""Shared test fixtures for the soundshelf test suite.

WHY: Several test modules need the same tag fields, audio buffers and
cover image. Centralizing them keeps the byte-level expectations in one
place.

HOW: Pytest fixtures return fresh objects for every test. Helper
functions build a pre-existing tag with an arbitrary declared size.

RULES:
- Audio buffers are plain zero bytes; nothing here is a real MP3 frame
- The fake JPEG only needs the SOI/EOI markers, the injector never sniffs it
"""


import pytest

from soundshelf.core.tags import TagFields

FAKE_JPEG = b"\xff\xd8\xff\xe0" + b"JFIF-ish cover bytes" + b"\xff\xd9"


def syncsafe(value: int) -> bytes:
    """Reference syncsafe encoder used to build fixtures independently."""
    return bytes([(value >> shift) & 0x7F for shift in (21, 14, 7, 0)])


def make_existing_tag(frame_bytes: int, fill: bytes = b"\xab") -> bytes:
    """Build a leading tag whose header declares ``frame_bytes`` of frames."""
    header = b"ID3\x04\x00\x00" + syncsafe(frame_bytes)
    return header + (fill * frame_bytes)[:frame_bytes]


@pytest.fixture
def simple_fields():
    """Single-letter fields from the reference end-to-end scenario."""
    return TagFields(title="A", artist="B", album="C", track_number=1, total_tracks=1)


@pytest.fixture
def art_fields():
    return TagFields(
        title="Intro",
        artist="The Band",
        album="First Album",
        track_number=3,
        total_tracks=12,
        album_art=FAKE_JPEG,
    )


@pytest.fixture
def clean_audio():
    """100 bytes of audio with no leading tag."""
    return bytes(100)


@pytest.fixture
def tagged_audio():
    """A 60-byte existing tag (50 declared frame bytes) followed by 40 audio bytes."""
    return make_existing_tag(50) + bytes(range(40))


@pytest.fixture
def fake_jpeg():
    return FAKE_JPEG
