"""SoundShelf — album streaming backend with tagged MP3 downloads.

WHY: Tracks are uploaded as bare MP3 files and their metadata lives in the
album database. Listeners who download a track expect title, artist, album,
track number and cover art to show up in their player, so the download
service writes that metadata into the file on the fly.

HOW: Three layers: fetch (api.client pulls audio and cover art over
HTTP), inject (core.id3 builds an ID3v2.3 tag and splices it in front of the
audio), serve (server.app exposes it as a FastAPI endpoint). The download
client and CLI sit on top for scripted and offline use.

RULES:
- core never does I/O; all network access goes through api.client
- Audio fetch failures fail the request, cover-art failures never do
"""

__version__ = "0.1.0"
