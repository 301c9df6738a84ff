"""Core tag-building modules.

WHY: The core package holds the part of SoundShelf that touches bytes:
the ID3v2.3 writer, the tag data types, and filename rules. It does no
network or disk I/O so it can be tested exhaustively in isolation.

HOW: tags.py defines TagFields and Frame, id3.py builds tags and strips
existing ones, naming.py turns track numbers and titles into filenames.

RULES:
- Everything here is pure and synchronous
- Callers validate required fields before calling inject()
"""

from soundshelf.core.id3 import TagTooLargeError, build_tag, inject
from soundshelf.core.tags import Frame, TagFields

__all__ = ["Frame", "TagFields", "TagTooLargeError", "build_tag", "inject"]
